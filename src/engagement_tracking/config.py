from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError
from .validators import validate_non_negative

EYE_CLOSED_DURATION_S: float = 1.0
YAWN_DURATION_S: float = 1.0
LOOK_AWAY_DURATION_S: float = 1.0

BASELINE_SCORE: float = 70.0

ENGAGED_WEIGHT: float = 10.0
DISTRACTED_WEIGHT: float = -15.0
SLEEPY_WEIGHT: float = -25.0
AWAY_WEIGHT: float = -20.0

EYE_CLOSED_THRESHOLD: float = 0.2
YAWN_THRESHOLD: float = 0.6
LOOK_AWAY_THRESHOLD: float = 1.0
FIDGETING_THRESHOLD: float = 0.3

class StateWeights(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    engaged: float = ENGAGED_WEIGHT
    distracted: float = DISTRACTED_WEIGHT
    sleepy: float = SLEEPY_WEIGHT
    away: float = AWAY_WEIGHT

    def for_state(self, state: str) -> float:
        return getattr(self, getattr(state, 'value', state))

class EngagementConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    eye_closed_duration: float = EYE_CLOSED_DURATION_S
    yawn_duration: float = YAWN_DURATION_S
    look_away_duration: float = LOOK_AWAY_DURATION_S
    baseline_score: float = BASELINE_SCORE
    state_weights: StateWeights = Field(default_factory=StateWeights)

    @field_validator('eye_closed_duration', 'yawn_duration', 'look_away_duration')
    @classmethod
    def validate_duration(cls, v, info):
        return validate_non_negative(v, info.field_name)

    @field_validator('baseline_score')
    @classmethod
    def validate_baseline(cls, v):
        if not 0 <= v <= 100:
            raise ValueError(f"Baseline score must be between 0 and 100, got {v}")
        return v

class DetectorThresholds(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    eye_closed_threshold: float = EYE_CLOSED_THRESHOLD
    yawn_threshold: float = YAWN_THRESHOLD
    look_away_threshold: float = LOOK_AWAY_THRESHOLD
    fidgeting_threshold: float = FIDGETING_THRESHOLD

    @field_validator('eye_closed_threshold', 'yawn_threshold', 'look_away_threshold', 'fidgeting_threshold')
    @classmethod
    def validate_threshold(cls, v, info):
        return validate_non_negative(v, info.field_name)

class TrackerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    hands_enabled: bool = True
    notifications_enabled: bool = False
    thresholds: DetectorThresholds = Field(default_factory=DetectorThresholds)

def _build(model: type, data: Mapping[str, Any]):
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {model.__name__}: {e}") from e

def build_config(data: Optional[Mapping[str, Any]] = None) -> EngagementConfig:
    if isinstance(data, EngagementConfig):
        return data
    return _build(EngagementConfig, data or {})

def build_settings(data: Optional[Mapping[str, Any]] = None) -> TrackerSettings:
    if isinstance(data, TrackerSettings):
        return data
    return _build(TrackerSettings, data or {})

def merge_config(config: EngagementConfig, partial: Mapping[str, Any]) -> EngagementConfig:
    """
    Merge a partial mapping over an existing config and re-validate it.

    ``state_weights`` is merged key by key so that callers can override a
    single weight without restating the others.
    """
    merged: Dict[str, Any] = config.model_dump()
    for key, value in partial.items():
        if key == 'state_weights' and isinstance(value, Mapping):
            merged['state_weights'] = {**merged['state_weights'], **value}
        elif key == 'state_weights' and isinstance(value, StateWeights):
            merged['state_weights'] = value.model_dump()
        else:
            merged[key] = value
    return _build(EngagementConfig, merged)
