import pytest
from pydantic import ValidationError

from engagement_tracking.models import (
    EngagementMetrics,
    EngagementState,
    Expression,
    FrameSample,
    TimeSeriesPoint
)

def test_absent_sample():
    sample = FrameSample.absent()
    assert not sample.face_present
    assert sample.looking_away
    assert sample.expression_label == Expression.UNKNOWN
    assert not sample.hands_present

@pytest.mark.parametrize("field", ["eye_aspect_ratio", "mouth_open_ratio", "fidgeting_intensity"])
def test_negative_measurements_rejected(field):
    with pytest.raises(ValidationError):
        FrameSample(**{field: -0.1})

def test_sample_is_frozen():
    sample = FrameSample.absent()
    with pytest.raises(ValidationError):
        sample.face_present = True

@pytest.mark.parametrize("score,confidence", [(-1, 0.5), (101, 0.5), (50, 1.5), (50, -0.1)])
def test_metrics_bounds(score, confidence):
    with pytest.raises(ValidationError):
        EngagementMetrics(state=EngagementState.ENGAGED, score=score, confidence=confidence, timestamp=0)

def test_metrics_state_from_string():
    metrics = EngagementMetrics(state="sleepy", score=40, confidence=0.9, timestamp=0)
    assert metrics.state is EngagementState.SLEEPY

def test_time_series_point_offset():
    with pytest.raises(ValidationError):
        TimeSeriesPoint(offset_seconds=-5, state="engaged", score=50)
