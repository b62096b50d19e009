import numpy as np
from typing import List, Any, Tuple
from .validators import is_valid_landmark

def _point(landmark: Any) -> np.ndarray:
    return np.array([landmark.x, landmark.y], dtype=np.float64)

def dist(p1: Any, p2: Any) -> float:
    return float(np.linalg.norm(_point(p1) - _point(p2)))

def calculate_ear(eye_landmarks: List[Any]) -> float:
    if len(eye_landmarks) != 6:
        raise ValueError(f"Expected 6 eye landmarks, got {len(eye_landmarks)}")

    v1 = dist(eye_landmarks[1], eye_landmarks[5])
    v2 = dist(eye_landmarks[2], eye_landmarks[4])

    h = dist(eye_landmarks[0], eye_landmarks[3])

    if h == 0:
        return 0.0

    ear = (v1 + v2) / (2.0 * h)
    return ear

def calculate_mouth_open_ratio(top_lip: Any, bottom_lip: Any, left_corner: Any, right_corner: Any) -> float:

    vertical = dist(top_lip, bottom_lip)
    horizontal = dist(left_corner, right_corner)

    if horizontal == 0:
        return 0.0

    return vertical / horizontal

def face_center(landmarks: Any) -> Tuple[float, float]:
    points = np.array([[lm.x, lm.y] for lm in landmarks if is_valid_landmark(lm)], dtype=np.float64)
    if len(points) == 0:
        raise ValueError("No valid face landmarks")

    mins = points.min(axis=0)
    maxs = points.max(axis=0)
    center = (mins + maxs) / 2.0
    return float(center[0]), float(center[1])

def hand_size(hand_landmarks: Any) -> float:

    # Wrist (0) to middle finger MCP (9).
    return dist(hand_landmarks[0], hand_landmarks[9])

def calculate_hand_movement(current_hand: Any, previous_hand: Any) -> float:
    """
    Mean landmark displacement between two ticks, normalised by the current
    hand size so the value does not depend on distance to the camera.
    """
    n = min(len(current_hand), len(previous_hand))
    if n == 0:
        return 0.0

    curr = np.array([[lm.x, lm.y] for lm in current_hand[:n]], dtype=np.float64)
    prev = np.array([[lm.x, lm.y] for lm in previous_hand[:n]], dtype=np.float64)

    movement = float(np.mean(np.linalg.norm(curr - prev, axis=1)))

    size = hand_size(current_hand) if len(current_hand) > 9 else 0.0
    if size <= 0:
        return movement

    return movement / size
