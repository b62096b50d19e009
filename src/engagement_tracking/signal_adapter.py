"""
Signal adapter: turns detector output into a FrameSample once per tick.

Detectors, the frame source and the expression recognizer are injected, so
tests can run the adapter against deterministic fakes. The MediaPipe and
OpenCV backends at the bottom of this module import their libraries lazily.
"""
import asyncio
import logging
import math
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from .config import DetectorThresholds, TrackerSettings, build_settings
from .models import Expression, FrameSample
from .utils import calculate_ear, calculate_hand_movement, calculate_mouth_open_ratio, face_center
from .validators import is_eyes_closed, is_yawning

logger = logging.getLogger(__name__)

# MediaPipe Face Mesh landmark indices
LEFT_EYE_INDICES = [362, 385, 387, 263, 373, 380]
RIGHT_EYE_INDICES = [33, 160, 158, 133, 153, 144]

UPPER_INNER_LIP = 13
LOWER_INNER_LIP = 14
LEFT_MOUTH_CORNER = 61
RIGHT_MOUTH_CORNER = 291

# Off-centre tolerance as a fraction of the (normalised) frame.
LOOK_AWAY_RADIUS: float = 0.3

WRIST_INDEX = 0
UPPER_FRAME_LIMIT: float = 0.5

EXPRESSION_ALIASES: Dict[str, Expression] = {
    "surprise": Expression.SURPRISED,
    "fear": Expression.FEARFUL,
    "disgust": Expression.DISGUSTED,
}

class FrameSource(Protocol):
    def read(self) -> Optional[Any]: ...

class FaceDetector(Protocol):
    def detect(self, frame: Any) -> Optional[Sequence[Any]]: ...

class HandDetector(Protocol):
    def detect(self, frame: Any) -> List[Sequence[Any]]: ...

class ExpressionRecognizer(Protocol):
    def recognize(self, frame: Any, landmarks: Sequence[Any]) -> Tuple[str, Dict[str, float]]: ...

def to_expression(label: Optional[str]) -> Expression:
    if not label:
        return Expression.UNKNOWN
    label = label.lower()
    if label in EXPRESSION_ALIASES:
        return EXPRESSION_ALIASES[label]
    try:
        return Expression(label)
    except ValueError:
        return Expression.UNKNOWN

class FaceSignalExtractor:

    def __init__(self, thresholds: Optional[DetectorThresholds] = None):
        self.thresholds = thresholds or DetectorThresholds()

    def extract(
        self,
        landmarks: Optional[Sequence[Any]],
        expression: Optional[Tuple[str, Dict[str, float]]] = None
    ) -> Dict[str, Any]:

        if not landmarks:
            return {
                "face_present": False,
                "eye_aspect_ratio": 0.0,
                "mouth_open_ratio": 0.0,
                "eyes_closed": False,
                "yawning": False,
                "looking_away": True,
                "expression_label": Expression.UNKNOWN,
                "expression_scores": {},
            }

        left_ear = calculate_ear([landmarks[i] for i in LEFT_EYE_INDICES])
        right_ear = calculate_ear([landmarks[i] for i in RIGHT_EYE_INDICES])
        ear = (left_ear + right_ear) / 2.0

        mouth_ratio = calculate_mouth_open_ratio(
            landmarks[UPPER_INNER_LIP],
            landmarks[LOWER_INNER_LIP],
            landmarks[LEFT_MOUTH_CORNER],
            landmarks[RIGHT_MOUTH_CORNER]
        )

        cx, cy = face_center(landmarks)
        offset = math.hypot(cx - 0.5, cy - 0.5)
        looking_away = offset > LOOK_AWAY_RADIUS * self.thresholds.look_away_threshold

        label, scores = expression if expression is not None else (None, {})

        return {
            "face_present": True,
            "eye_aspect_ratio": ear,
            "mouth_open_ratio": mouth_ratio,
            "eyes_closed": is_eyes_closed(ear, self.thresholds.eye_closed_threshold),
            "yawning": is_yawning(mouth_ratio, self.thresholds.yawn_threshold),
            "looking_away": looking_away,
            "expression_label": to_expression(label),
            "expression_scores": dict(scores),
        }

class HandSignalExtractor:
    """Keeps the previous tick's hand landmarks to measure fidgeting."""

    def __init__(self, thresholds: Optional[DetectorThresholds] = None):
        self.thresholds = thresholds or DetectorThresholds()
        self._previous_hands: List[Sequence[Any]] = []

    def extract(self, hands: Optional[List[Sequence[Any]]]) -> Dict[str, Any]:

        if not hands:
            self._previous_hands = []
            return {
                "hands_present": False,
                "hands_fidgeting": False,
                "hand_over_face": False,
                "fidgeting_intensity": 0.0,
            }

        intensity = 0.0
        for current, previous in zip(hands, self._previous_hands):
            intensity = max(intensity, calculate_hand_movement(current, previous))

        hand_over_face = hands[0][WRIST_INDEX].y < UPPER_FRAME_LIMIT

        self._previous_hands = list(hands)

        return {
            "hands_present": True,
            "hands_fidgeting": intensity > self.thresholds.fidgeting_threshold,
            "hand_over_face": hand_over_face,
            "fidgeting_intensity": intensity,
        }

    def reset(self) -> None:
        self._previous_hands = []

class SignalAdapter:

    def __init__(
        self,
        frame_source: FrameSource,
        face_detector: FaceDetector,
        hand_detector: Optional[HandDetector] = None,
        expression_recognizer: Optional[ExpressionRecognizer] = None,
        settings: Optional[TrackerSettings] = None
    ):
        self.frame_source = frame_source
        self.face_detector = face_detector
        self.hand_detector = hand_detector
        self.expression_recognizer = expression_recognizer
        self.settings = build_settings(settings)

        self.face_extractor = FaceSignalExtractor(self.settings.thresholds)
        self.hand_extractor = HandSignalExtractor(self.settings.thresholds)

    def sample_frame(self) -> FrameSample:
        frame = self.frame_source.read()
        if frame is None:
            logger.warning("No frame available, treating tick as absent")
            self.hand_extractor.reset()
            return FrameSample.absent()

        landmarks = self.face_detector.detect(frame)

        expression = None
        if landmarks and self.expression_recognizer is not None:
            expression = self.expression_recognizer.recognize(frame, landmarks)

        face = self.face_extractor.extract(landmarks, expression)

        hands = None
        if self.settings.hands_enabled and self.hand_detector is not None:
            hands = self.hand_detector.detect(frame)
        hand = self.hand_extractor.extract(hands)

        return FrameSample(**face, **hand)

    async def acquire(self) -> FrameSample:
        try:
            return await asyncio.to_thread(self.sample_frame)
        except Exception as e:
            logger.warning("Detection failed, treating tick as absent: %s", e)
            self.hand_extractor.reset()
            return FrameSample.absent()

class CameraFrameSource:

    def __init__(self, device: int = 0):
        import cv2

        self._cv2 = cv2
        self.capture = cv2.VideoCapture(device)
        if not self.capture.isOpened():
            raise RuntimeError(f"Could not open camera device {device}")

    def read(self) -> Optional[Any]:
        ret, frame = self.capture.read()
        if not ret:
            return None
        return frame

    def release(self) -> None:
        self.capture.release()

class MediaPipeFaceDetector:

    def __init__(self, min_detection_confidence: float = 0.5, min_tracking_confidence: float = 0.5):
        import cv2
        import mediapipe as mp

        self._cv2 = cv2
        self.face_mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence
        )

    def detect(self, frame: Any) -> Optional[Sequence[Any]]:
        rgb_frame = self._cv2.cvtColor(frame, self._cv2.COLOR_BGR2RGB)
        results = self.face_mesh.process(rgb_frame)
        if not results.multi_face_landmarks:
            return None
        return results.multi_face_landmarks[0].landmark

    def close(self) -> None:
        self.face_mesh.close()

class MediaPipeHandDetector:

    def __init__(self, max_num_hands: int = 2, min_detection_confidence: float = 0.5):
        import cv2
        import mediapipe as mp

        self._cv2 = cv2
        self.hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=max_num_hands,
            min_detection_confidence=min_detection_confidence
        )

    def detect(self, frame: Any) -> List[Sequence[Any]]:
        rgb_frame = self._cv2.cvtColor(frame, self._cv2.COLOR_BGR2RGB)
        results = self.hands.process(rgb_frame)
        if not results.multi_hand_landmarks:
            return []
        return [hand.landmark for hand in results.multi_hand_landmarks]

    def close(self) -> None:
        self.hands.close()
