"""
Face detection, landmarks and expression scoring for the voice camera.
"""

import cv2
import os
import logging
from typing import Dict, List, Optional

from ..utils.config import config
from .errors import ModelLoadFailure
from .perception import PerceptionProvider
from .types import EXPRESSION_LABELS, FaceDetection, Point, Rect

logger = logging.getLogger(__name__)

# DeepFace emotion keys → our expression labels
_EMOTION_MAP = {
    "neutral": "neutral",
    "happy": "happy",
    "sad": "sad",
    "angry": "angry",
    "fear": "fearful",
    "disgust": "disgusted",
    "surprise": "surprised",
}


def emotion_scores(raw: Dict[str, float]) -> Dict[str, float]:
    """Convert DeepFace percentages into probabilities over EXPRESSION_LABELS."""
    by_label = {_EMOTION_MAP[key]: float(value) / 100.0 for key, value in raw.items() if key in _EMOTION_MAP}
    return {label: by_label.get(label, 0.0) for label in EXPRESSION_LABELS}


class FaceExpressionProvider(PerceptionProvider):
    """Detects faces with dlib and scores expressions with DeepFace.

    Landmarks come from dlib's 68-point shape predictor when its model file
    is present; without it faces are reported with ``landmarks=None``.
    """

    name = "face"

    def __init__(self, cfg=config):
        self.landmark_model_path = cfg.LANDMARK_MODEL_PATH
        self.detector_backend = cfg.EMOTION_DETECTOR_BACKEND
        self.upsample = cfg.FACE_UPSAMPLE
        self.detector = None
        self.predictor = None
        self._deepface = None

    def load(self) -> None:
        try:
            import dlib
            self.detector = dlib.get_frontal_face_detector()
            if os.path.exists(self.landmark_model_path):
                self.predictor = dlib.shape_predictor(self.landmark_model_path)
                logger.info("✓ Landmark predictor loaded")
            else:
                logger.warning(f"Landmark model not found at {self.landmark_model_path}; landmarks disabled")

            # DeepFace loads TF/models on first use
            from deepface import DeepFace
            self._deepface = DeepFace
        except (ImportError, RuntimeError, OSError) as e:
            raise ModelLoadFailure(f"face models: {e}") from e

    def _analyze(self, crop) -> Dict[str, float]:
        analyses = self._deepface.analyze(
            img_path=crop,
            actions=["emotion"],
            enforce_detection=False,
            detector_backend=self.detector_backend,
            silent=True,
        )
        if isinstance(analyses, dict):
            analyses = [analyses]
        if not analyses:
            return emotion_scores({})
        return emotion_scores(analyses[0].get("emotion", {}))

    def _landmarks(self, gray, rect) -> Optional[List[Point]]:
        if self.predictor is None:
            return None
        shape = self.predictor(gray, rect)
        return [Point(part.x, part.y) for part in shape.parts()]

    def detect(self, frame) -> List[FaceDetection]:
        """Returns one FaceDetection per face found in the frame."""
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        frame_h, frame_w = gray.shape[:2]

        faces = []
        for rect in self.detector(gray, self.upsample):
            left, top = max(0, rect.left()), max(0, rect.top())
            right, bottom = min(frame_w, rect.right()), min(frame_h, rect.bottom())
            crop = frame[top:bottom, left:right]
            if crop.size == 0:
                continue

            faces.append(FaceDetection(
                bounding_box=Rect(left, top, right - left, bottom - top),
                expression_scores=self._analyze(crop),
                landmarks=self._landmarks(gray, rect),
            ))
        return faces
