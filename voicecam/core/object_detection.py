"""
Generic object detection for the voice camera using ultralytics YOLO.
"""

import logging
from typing import List

from ..utils.config import config
from .errors import ModelLoadFailure
from .perception import PerceptionProvider
from .types import ObjectDetection, Rect

logger = logging.getLogger(__name__)


class ObjectDetectionProvider(PerceptionProvider):
    """Detects COCO objects with a YOLO model (weights fetched on first load)."""

    name = "object"

    def __init__(self, cfg=config):
        self.model_name = cfg.OBJECT_MODEL
        self.min_score = cfg.OBJECT_MIN_SCORE
        self.max_detections = cfg.OBJECT_MAX_DETECTIONS
        self.model = None

    def load(self) -> None:
        try:
            from ultralytics import YOLO
            self.model = YOLO(self.model_name)
        except Exception as e:
            raise ModelLoadFailure(f"object model {self.model_name}: {e}") from e
        logger.info(f"✓ Object model {self.model_name} loaded")

    def detect(self, frame) -> List[ObjectDetection]:
        results = self.model(frame, conf=self.min_score, max_det=self.max_detections, verbose=False)
        if not results:
            return []

        result = results[0]
        names = result.names
        detections = []
        for box in result.boxes:
            x1, y1, x2, y2 = box.xyxy[0].tolist()
            cls_idx = int(box.cls[0])
            detections.append(ObjectDetection(
                bounding_box=Rect(x1, y1, x2 - x1, y2 - y1),
                label=names.get(cls_idx, str(cls_idx)),
                score=float(box.conf[0]),
            ))
        return detections
