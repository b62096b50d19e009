"""
Session statistics derived from a full-resolution metrics series.

Everything here is a pure function of the retained series, so a record can be
rebuilt identically if handing it to storage fails and has to be retried.
"""
from typing import TYPE_CHECKING, Dict, List, Sequence

import numpy as np

from .models import (
    DISTRACTION_STATES,
    EngagementMetrics,
    EngagementState,
    SessionRecord,
    TimeSeriesPoint
)
from .validators import round_half_up

if TYPE_CHECKING:
    from .session_manager import Session

DOWNSAMPLE_STRIDE: int = 5

def count_distracted_episodes(series: Sequence[EngagementMetrics]) -> int:
    """
    Count maximal runs of distracted/sleepy points.

    One episode per rising edge of the "distracting" flag; sustained runs and
    falling edges never count.
    """
    episodes = 0
    in_episode = False

    for point in series:
        distracting = point.state in DISTRACTION_STATES
        if distracting and not in_episode:
            episodes += 1
        in_episode = distracting

    return episodes

def count_yawns(series: Sequence[EngagementMetrics]) -> int:
    # Approximation kept for compatibility: sleepy ticks, not yawn events.
    return sum(1 for point in series if point.state == EngagementState.SLEEPY)

def engagement_stats(series: Sequence[EngagementMetrics]) -> Dict[str, int]:
    counts = {state.value: 0 for state in EngagementState}

    total = len(series)
    if total == 0:
        return counts

    for point in series:
        counts[point.state.value] += 1

    return {
        state: round_half_up(count / total * 100)
        for state, count in counts.items()
    }

def reconstruct_state_seconds(stats: Dict[str, int], duration_sec: int) -> Dict[str, int]:
    # Percentage round-trip, so the sum may drift from duration_sec by a few seconds.
    return {
        state: round_half_up(pct * duration_sec / 100)
        for state, pct in stats.items()
    }

def downsample(series: Sequence[EngagementMetrics], stride: int = DOWNSAMPLE_STRIDE) -> List[TimeSeriesPoint]:
    if stride <= 0:
        raise ValueError(f"Stride must be positive, got {stride}")

    return [
        TimeSeriesPoint(offset_seconds=index, state=point.state, score=point.score)
        for index, point in enumerate(series)
        if index % stride == 0
    ]

def average_score(series: Sequence[EngagementMetrics]) -> int:
    if len(series) == 0:
        return 0
    return round_half_up(float(np.mean([point.score for point in series])))

def build_session_record(session: 'Session') -> SessionRecord:

    if session.ended_at is None:
        raise ValueError(f"Session {session.id} has not ended")

    series = session.time_series
    duration = len(series)

    seconds = reconstruct_state_seconds(engagement_stats(series), duration)

    return SessionRecord(
        session_id=session.id,
        user_id=session.user_id,
        started_at=session.started_at,
        ended_at=session.ended_at,
        duration_sec=duration,
        engaged_sec=seconds[EngagementState.ENGAGED.value],
        distracted_sec=seconds[EngagementState.DISTRACTED.value],
        sleepy_sec=seconds[EngagementState.SLEEPY.value],
        away_sec=seconds[EngagementState.AWAY.value],
        yawn_count=count_yawns(series),
        distracted_episodes=count_distracted_episodes(series),
        avg_engagement_score=average_score(series),
        nudge_count=session.nudge_count,
        time_series=downsample(series)
    )
