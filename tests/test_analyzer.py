import pytest

from engagement_tracking.analyzer import EngagementTracker
from engagement_tracking.errors import SessionLifecycleError
from engagement_tracking.models import FrameSample
from engagement_tracking.nudges import NUDGE_MESSAGES
from engagement_tracking.models import EngagementState

def test_process_without_session_is_an_error(make_sample):
    tracker = EngagementTracker()
    with pytest.raises(SessionLifecycleError):
        tracker.process_sample(make_sample(), 0)

def test_tick_output(make_sample):
    tracker = EngagementTracker()
    tracker.start_session("user-1")

    output = tracker.process_sample(make_sample(), 0)

    assert output["session_status"] == "active"
    assert output["metrics"]["state"] == "engaged"
    assert output["metrics"]["score"] == 90
    assert output["average_score"] == 90.0
    assert output["trend"] == "stable"
    assert output["nudge_message"] is None
    assert tracker.session.duration == 1

def test_paused_session_skips_ticks(make_sample):
    tracker = EngagementTracker()
    tracker.start_session("user-1")
    tracker.pause_session()

    output = tracker.process_sample(make_sample(), 0)

    assert output["session_status"] == "paused"
    assert output["skipped_reason"] == "session_paused"
    assert output["metrics"] is None
    assert tracker.session.duration == 0
    assert tracker.classifier.history_size == 0

    tracker.resume_session()
    tracker.process_sample(make_sample(), 1000)
    assert tracker.session.duration == 1

def test_dict_and_invalid_samples(make_sample):
    tracker = EngagementTracker()
    tracker.start_session("user-1")

    output = tracker.process_sample(make_sample().model_dump(), 0)
    assert output["metrics"]["state"] == "engaged"

    output = tracker.process_sample({"face_present": True, "eye_aspect_ratio": -1.0}, 1000)
    assert output["metrics"]["confidence"] == pytest.approx(0.5)

    output = tracker.process_sample(None, 2000)
    assert output["metrics"]["confidence"] == pytest.approx(0.5)
    assert tracker.session.duration == 3

def test_nudges_when_enabled():
    tracker = EngagementTracker(settings={"notifications_enabled": True})
    tracker.start_session("user-1")

    outputs = [tracker.process_sample(FrameSample.absent(), ts) for ts in (0, 1000, 2000)]

    assert outputs[0]["nudge_message"] == NUDGE_MESSAGES[EngagementState.DISTRACTED]
    assert outputs[1]["nudge_message"] is None
    assert outputs[2]["nudge_message"] is None
    assert tracker.session.nudge_count == 1

def test_full_session(make_sample):
    tracker = EngagementTracker(config={"look_away_duration": 1.5})
    session = tracker.start_session("user-1")

    ts = 0
    for sample in [make_sample()] * 5 + [FrameSample.absent()] * 4 + [make_sample()] * 3:
        tracker.process_sample(sample, ts)
        ts += 1000

    summary = tracker.get_session_summary()
    assert summary["session_id"] == session.id
    assert summary["duration_seconds"] == 12

    record = tracker.stop_session()

    assert record.duration_sec == 12
    # absent ticks: distracted, distracted, away, away
    assert record.distracted_episodes == 1
    assert record.away_sec == 2
    assert record.engaged_sec == 8
    assert len(record.time_series) == 3
    assert tracker.classifier.history_size == 0

    with pytest.raises(SessionLifecycleError):
        tracker.process_sample(make_sample(), ts)

def test_summary_without_session():
    assert "error" in EngagementTracker().get_session_summary()
