from engagement_tracking.models import EngagementMetrics, EngagementState
from engagement_tracking.nudges import NUDGE_MESSAGES, NudgeAdvisor
from engagement_tracking.session_manager import SessionAggregator

def metrics(state, ts):
    return EngagementMetrics(state=state, score=50, confidence=1.0, timestamp=ts)

def started():
    aggregator = SessionAggregator(clock=lambda: 0.0)
    aggregator.start("user-1")
    return aggregator

def test_nudge_on_state_change_into_bad_state():
    aggregator = started()
    advisor = NudgeAdvisor()

    assert advisor.evaluate(metrics(EngagementState.ENGAGED, 0), aggregator, 0) is None
    message = advisor.evaluate(metrics(EngagementState.SLEEPY, 1000), aggregator, 1000)

    assert message == NUDGE_MESSAGES[EngagementState.SLEEPY]
    assert aggregator.current_session.nudge_count == 1
    assert aggregator.current_session.last_nudge_time == 1000

def test_sustained_bad_state_nudges_once():
    aggregator = started()
    advisor = NudgeAdvisor()

    assert advisor.evaluate(metrics(EngagementState.DISTRACTED, 0), aggregator, 0) is not None
    assert advisor.evaluate(metrics(EngagementState.DISTRACTED, 70_000), aggregator, 70_000) is None
    assert aggregator.current_session.nudge_count == 1

def test_cooldown_blocks_new_state():
    aggregator = started()
    advisor = NudgeAdvisor()

    advisor.evaluate(metrics(EngagementState.DISTRACTED, 0), aggregator, 0)
    assert advisor.evaluate(metrics(EngagementState.AWAY, 10_000), aggregator, 10_000) is None
    assert advisor.evaluate(metrics(EngagementState.SLEEPY, 61_000), aggregator, 61_000) == NUDGE_MESSAGES[EngagementState.SLEEPY]
    assert aggregator.current_session.nudge_count == 2

def test_disabled_advisor_never_nudges():
    aggregator = started()
    advisor = NudgeAdvisor(enabled=False)

    assert advisor.evaluate(metrics(EngagementState.AWAY, 0), aggregator, 0) is None
    assert aggregator.current_session.nudge_count == 0

def test_bad_state_started_during_cooldown_nudges_once_cooldown_ends():
    aggregator = started()
    advisor = NudgeAdvisor()

    assert advisor.evaluate(metrics(EngagementState.DISTRACTED, 0), aggregator, 0) is not None

    messages = [
        advisor.evaluate(metrics(EngagementState.SLEEPY, ts), aggregator, ts)
        for ts in range(10_000, 71_000, 1000)
    ]

    assert messages.count(NUDGE_MESSAGES[EngagementState.SLEEPY]) == 1
    assert messages[(60_000 - 10_000) // 1000] == NUDGE_MESSAGES[EngagementState.SLEEPY]
    assert aggregator.current_session.nudge_count == 2
    assert aggregator.current_session.last_nudge_time == 60_000
