from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

class EngagementState(str, Enum):
    ENGAGED = "engaged"
    DISTRACTED = "distracted"
    SLEEPY = "sleepy"
    AWAY = "away"

class Expression(str, Enum):
    NEUTRAL = "neutral"
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    FEARFUL = "fearful"
    DISGUSTED = "disgusted"
    SURPRISED = "surprised"
    UNKNOWN = "unknown"

class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"

NEGATIVE_EXPRESSIONS = frozenset({
    Expression.SAD,
    Expression.ANGRY,
    Expression.FEARFUL,
    Expression.DISGUSTED,
    Expression.SURPRISED,
})

POSITIVE_EXPRESSIONS = frozenset({Expression.HAPPY, Expression.NEUTRAL})

DISTRACTION_STATES = frozenset({EngagementState.DISTRACTED, EngagementState.SLEEPY})

def _check_score(v):
    if v is not None and (v < 0 or v > 100):
        raise ValueError(f"Score must be between 0 and 100, got {v}")
    return v

class FrameSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    face_present: bool = False
    eye_aspect_ratio: float = 0.0
    mouth_open_ratio: float = 0.0
    eyes_closed: bool = False
    yawning: bool = False
    looking_away: bool = False
    expression_label: Expression = Expression.UNKNOWN
    expression_scores: Dict[str, float] = Field(default_factory=dict)

    hands_present: bool = False
    hands_fidgeting: bool = False
    hand_over_face: bool = False
    fidgeting_intensity: float = 0.0

    @field_validator('eye_aspect_ratio', 'mouth_open_ratio', 'fidgeting_intensity')
    @classmethod
    def validate_non_negative(cls, v, info):
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0, got {v}")
        return v

    @classmethod
    def absent(cls) -> 'FrameSample':
        return cls(
            face_present=False,
            looking_away=True,
            expression_label=Expression.UNKNOWN,
        )

class EngagementMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: EngagementState
    score: int
    confidence: float
    timestamp: float

    @field_validator('score')
    @classmethod
    def validate_score_range(cls, v):
        return _check_score(v)

    @field_validator('confidence')
    @classmethod
    def validate_confidence_range(cls, v):
        if v < 0 or v > 1:
            raise ValueError(f"Confidence must be between 0 and 1, got {v}")
        return v

class TimeSeriesPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    offset_seconds: int = Field(ge=0)
    state: EngagementState
    score: int

    @field_validator('score')
    @classmethod
    def validate_score_range(cls, v):
        return _check_score(v)

class SessionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    started_at: datetime
    ended_at: datetime
    duration_sec: int = Field(ge=0)
    engaged_sec: int = Field(ge=0)
    distracted_sec: int = Field(ge=0)
    sleepy_sec: int = Field(ge=0)
    away_sec: int = Field(ge=0)
    yawn_count: int = Field(default=0, ge=0)
    distracted_episodes: int = Field(default=0, ge=0)
    avg_engagement_score: int
    nudge_count: int = Field(default=0, ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)
    time_series: List[TimeSeriesPoint] = []

    @field_validator('avg_engagement_score')
    @classmethod
    def validate_score_range(cls, v):
        return _check_score(v)

    @field_validator('time_series')
    @classmethod
    def validate_ordering(cls, v):
        for prev, curr in zip(v, v[1:]):
            if curr.offset_seconds <= prev.offset_seconds:
                raise ValueError(
                    f"Time series must be ordered by offset_seconds, "
                    f"got {prev.offset_seconds} before {curr.offset_seconds}"
                )
        return v

    @model_validator(mode='after')
    def validate_interval(self):
        if self.ended_at < self.started_at:
            raise ValueError("ended_at must not be earlier than started_at")
        return self

    def state_seconds(self) -> Dict[str, int]:
        return {
            EngagementState.ENGAGED.value: self.engaged_sec,
            EngagementState.DISTRACTED.value: self.distracted_sec,
            EngagementState.SLEEPY.value: self.sleepy_sec,
            EngagementState.AWAY.value: self.away_sec,
        }

class TickOutput(BaseModel):
    session_status: str = "active"
    metrics: Optional[EngagementMetrics] = None
    average_score: Optional[float] = None
    trend: TrendDirection = TrendDirection.STABLE
    nudge_message: Optional[str] = None
    skipped_reason: Optional[str] = None
