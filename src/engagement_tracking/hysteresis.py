"""
Hysteresis timers for the engagement state machine.

The timers are an immutable snapshot: every tick takes the previous snapshot
and the current sample and returns the next snapshot together with the state.
The classifier only swaps the snapshot it holds; nothing here mutates.
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .config import EngagementConfig
from .models import NEGATIVE_EXPRESSIONS, EngagementState, FrameSample

# Fixed, not part of EngagementConfig.
AWAY_THRESHOLD_SECONDS: float = 2.0

@dataclass(frozen=True)
class HysteresisTimers:
    eyes_closed_since: Optional[float] = None
    yawn_since: Optional[float] = None
    look_away_since: Optional[float] = None
    face_absent_since: Optional[float] = None

def _edge(since: Optional[float], condition: bool, timestamp: float) -> Optional[float]:
    if not condition:
        return None
    if since is None:
        return timestamp
    return since

def advance_timers(timers: HysteresisTimers, sample: FrameSample, timestamp: float) -> HysteresisTimers:
    """
    Arm each timer on the first tick its condition holds and clear it on the
    first tick it does not. An armed timer keeps its original start time.
    """
    return replace(
        timers,
        eyes_closed_since=_edge(timers.eyes_closed_since, sample.eyes_closed, timestamp),
        yawn_since=_edge(timers.yawn_since, sample.yawning, timestamp),
        look_away_since=_edge(timers.look_away_since, sample.looking_away, timestamp),
        face_absent_since=_edge(timers.face_absent_since, not sample.face_present, timestamp),
    )

def sustained_seconds(since: Optional[float], timestamp: float) -> float:
    if since is None:
        return 0.0
    return (timestamp - since) / 1000.0

def determine_state(
    timers: HysteresisTimers,
    sample: FrameSample,
    timestamp: float,
    config: EngagementConfig
) -> EngagementState:
    """
    Priority-ordered decision list. Earlier rules win even when later
    rules' timers are also armed.

    1. away        face absent for AWAY_THRESHOLD_SECONDS
    2. sleepy      eyes closed / yawning sustained
    3. distracted  look-away sustained, fidgeting, hand over face,
                   negative expression
    4. engaged     face present, looking ahead, eyes open (instantaneous)
    5. distracted  fallback
    """
    if not sample.face_present:
        if sustained_seconds(timers.face_absent_since, timestamp) >= AWAY_THRESHOLD_SECONDS:
            return EngagementState.AWAY

    eyes_closed_for = sustained_seconds(timers.eyes_closed_since, timestamp)
    yawning_for = sustained_seconds(timers.yawn_since, timestamp)

    if (timers.eyes_closed_since is not None and eyes_closed_for >= config.eye_closed_duration) or \
            (timers.yawn_since is not None and yawning_for >= config.yawn_duration):
        return EngagementState.SLEEPY

    looking_away_for = sustained_seconds(timers.look_away_since, timestamp)

    is_distracted = (
        (timers.look_away_since is not None and looking_away_for >= config.look_away_duration) or
        sample.hands_fidgeting or
        sample.hand_over_face or
        sample.expression_label in NEGATIVE_EXPRESSIONS
    )

    if is_distracted:
        return EngagementState.DISTRACTED

    if sample.face_present and not sample.looking_away and not sample.eyes_closed:
        return EngagementState.ENGAGED

    return EngagementState.DISTRACTED

def classify(
    timers: HysteresisTimers,
    sample: FrameSample,
    timestamp: float,
    config: EngagementConfig
) -> Tuple[HysteresisTimers, EngagementState]:
    next_timers = advance_timers(timers, sample, timestamp)
    return next_timers, determine_state(next_timers, sample, timestamp, config)
