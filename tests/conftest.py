from types import SimpleNamespace

import pytest

from engagement_tracking.models import EngagementMetrics, EngagementState, Expression, FrameSample

FACE_MESH_SIZE = 478
HAND_SIZE = 21

@pytest.fixture
def make_sample():
    def _make(**overrides):
        values = dict(
            face_present=True,
            eye_aspect_ratio=0.3,
            mouth_open_ratio=0.2,
            eyes_closed=False,
            yawning=False,
            looking_away=False,
            expression_label=Expression.NEUTRAL,
        )
        values.update(overrides)
        return FrameSample(**values)
    return _make

@pytest.fixture
def make_series():
    def _make(states, score=50):
        return [
            EngagementMetrics(
                state=EngagementState(state),
                score=score,
                confidence=1.0,
                timestamp=i * 1000.0
            )
            for i, state in enumerate(states)
        ]
    return _make

def _lm(x, y):
    return SimpleNamespace(x=x, y=y, z=0.0)

@pytest.fixture
def make_face():
    """Face-mesh landmark list with controllable eye and mouth openings."""
    def _make(eye_gap=0.02, mouth_gap=0.01, dx=0.0, dy=0.0):
        landmarks = [_lm(0.5 + dx, 0.5 + dy) for _ in range(FACE_MESH_SIZE)]

        def put(index, x, y):
            landmarks[index] = _lm(x + dx, y + dy)

        # Eyes: corners 0.1 apart, lids +/- eye_gap
        for (c0, t1, t2, c3, b4, b5), left in (
            ((362, 385, 387, 263, 373, 380), 0.55),
            ((33, 160, 158, 133, 153, 144), 0.35),
        ):
            put(c0, left, 0.45)
            put(c3, left + 0.1, 0.45)
            put(t1, left + 0.03, 0.45 - eye_gap)
            put(b5, left + 0.03, 0.45 + eye_gap)
            put(t2, left + 0.07, 0.45 - eye_gap)
            put(b4, left + 0.07, 0.45 + eye_gap)

        # Mouth: corners 0.1 apart, lips +/- mouth_gap
        put(61, 0.45, 0.6)
        put(291, 0.55, 0.6)
        put(13, 0.5, 0.6 - mouth_gap)
        put(14, 0.5, 0.6 + mouth_gap)

        return landmarks
    return _make

@pytest.fixture
def make_hand():
    def _make(dx=0.0, wrist_y=0.8):
        hand = [_lm(0.5 + dx, wrist_y - 0.1) for _ in range(HAND_SIZE)]
        hand[0] = _lm(0.5 + dx, wrist_y)
        return hand
    return _make
