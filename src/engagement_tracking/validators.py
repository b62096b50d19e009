import math
from typing import Any

def is_eyes_closed(ear: float, threshold: float = 0.2) -> bool:
    return ear < threshold

def is_yawning(mouth_open_ratio: float, threshold: float = 0.6) -> bool:
    return mouth_open_ratio > threshold

def is_valid_landmark(landmark: Any) -> bool:
    if landmark is None:
        return False
    return hasattr(landmark, 'x') and hasattr(landmark, 'y')

def is_valid_measurement(value: float) -> bool:

    return value > 0 and math.isfinite(value)

def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))

def validate_score_range(score: float, min_val: float = 0.0, max_val: float = 100.0) -> float:
    return max(min_val, min(max_val, score))

def validate_non_negative(value: float, name: str) -> float:
    if value is None or not math.isfinite(value) or value < 0:
        raise ValueError(
            f"Invalid {name}: {value}. "
            f"Value must be a finite number >= 0"
        )
    return value
