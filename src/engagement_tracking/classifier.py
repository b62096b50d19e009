import logging
from typing import Any, Mapping, Optional, Union

import numpy as np

from .config import EngagementConfig, build_config, merge_config
from .hysteresis import HysteresisTimers, classify
from .models import (
    POSITIVE_EXPRESSIONS,
    EngagementMetrics,
    EngagementState,
    Expression,
    FrameSample,
    TrendDirection
)
from .score_history import ScoreHistory
from .validators import is_valid_measurement, round_half_up, validate_score_range

logger = logging.getLogger(__name__)

FACE_PRESENT_BONUS: float = 5.0
EXPRESSION_BONUS: float = 5.0
FIDGETING_PENALTY: float = 10.0
HAND_OVER_FACE_PENALTY: float = 15.0

HEAVY_EYELID_EAR: float = 0.15
HEAVY_EYELID_PENALTY: float = 20.0
WIDE_MOUTH_RATIO: float = 0.8
WIDE_MOUTH_PENALTY: float = 15.0

BASE_CONFIDENCE: float = 0.5
FACE_CONFIDENCE: float = 0.3
EAR_CONFIDENCE: float = 0.1
EXPRESSION_CONFIDENCE: float = 0.1

MIN_TREND_SAMPLES: int = 5
TREND_DELTA: float = 5.0

def calculate_score(state: EngagementState, sample: FrameSample, config: EngagementConfig) -> int:

    score = config.baseline_score
    score += config.state_weights.for_state(state)

    if sample.face_present:
        score += FACE_PRESENT_BONUS

    if sample.expression_label in POSITIVE_EXPRESSIONS:
        score += EXPRESSION_BONUS

    if sample.hands_fidgeting:
        score -= FIDGETING_PENALTY

    if sample.hand_over_face:
        score -= HAND_OVER_FACE_PENALTY

    # Instantaneous severity, applied on top of the sustained state weight.
    if sample.eye_aspect_ratio < HEAVY_EYELID_EAR:
        score -= HEAVY_EYELID_PENALTY

    if sample.mouth_open_ratio > WIDE_MOUTH_RATIO:
        score -= WIDE_MOUTH_PENALTY

    return round_half_up(validate_score_range(score, 0, 100))

def calculate_confidence(sample: FrameSample) -> float:

    confidence = BASE_CONFIDENCE

    if sample.face_present:
        confidence += FACE_CONFIDENCE

    if is_valid_measurement(sample.eye_aspect_ratio):
        confidence += EAR_CONFIDENCE

    if sample.expression_label != Expression.UNKNOWN:
        confidence += EXPRESSION_CONFIDENCE

    return validate_score_range(confidence, 0.0, 1.0)

class EngagementClassifier:

    def __init__(
        self,
        config: Optional[Union[EngagementConfig, Mapping[str, Any]]] = None,
        history_capacity: int = ScoreHistory.DEFAULT_CAPACITY
    ):

        self._config: EngagementConfig = build_config(config)

        self._timers: HysteresisTimers = HysteresisTimers()

        self._history: ScoreHistory = ScoreHistory(history_capacity)

        self._last_state: Optional[EngagementState] = None

    @property
    def config(self) -> EngagementConfig:
        return self._config

    @property
    def timers(self) -> HysteresisTimers:
        return self._timers

    @property
    def history_size(self) -> int:
        return len(self._history)

    def update_config(self, partial: Optional[Mapping[str, Any]] = None, **overrides: Any) -> EngagementConfig:
        changes = {**(partial or {}), **overrides}
        self._config = merge_config(self._config, changes)
        logger.debug("Engagement config updated: %s", changes)
        return self._config

    def process_frame(self, sample: FrameSample, timestamp: float) -> EngagementMetrics:

        self._timers, state = classify(self._timers, sample, timestamp, self._config)

        score = calculate_score(state, sample, self._config)

        confidence = calculate_confidence(sample)

        self._history.append(score)

        if state != self._last_state:
            logger.debug("State %s -> %s at t=%.0fms", self._last_state, state, timestamp)
            self._last_state = state

        return EngagementMetrics(
            state=state,
            score=score,
            confidence=confidence,
            timestamp=timestamp
        )

    def get_average_score(self, window_seconds: int = 10) -> float:
        recent = self._history.recent(int(window_seconds))
        if len(recent) == 0:
            return float(self._config.baseline_score)
        return float(np.mean(recent))

    def get_trend_direction(self, window_seconds: int = 10) -> TrendDirection:
        """
        Two-window delta: compares the mean of the older half of the window
        with the mean of the newer half. Not a regression; a smoother
        estimator would fit a slope over the whole window.
        """
        recent = self._history.recent(int(window_seconds))
        window_size = len(recent)
        if window_size < MIN_TREND_SAMPLES:
            return TrendDirection.STABLE

        split = window_size // 2
        diff = float(np.mean(recent[split:]) - np.mean(recent[:split]))

        if diff > TREND_DELTA:
            return TrendDirection.IMPROVING
        if diff < -TREND_DELTA:
            return TrendDirection.DECLINING
        return TrendDirection.STABLE

    def reset(self) -> None:

        self._timers = HysteresisTimers()

        self._history.clear()

        self._last_state = None
