"""
Transparent overlay drawing for face and object detections.
"""

import cv2
import logging
import numpy as np
from typing import Optional, Tuple

from .expression import describe_expression
from .types import DetectionFrame, Rect

logger = logging.getLogger(__name__)

# BGRA colours
FACE_COLOR = (255, 0, 0, 255)
LANDMARK_COLOR = (255, 255, 0, 255)
OBJECT_COLOR = (0, 255, 0, 255)

FONT = cv2.FONT_HERSHEY_SIMPLEX


def _corners(box: Rect) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    x, y = int(round(box.x)), int(round(box.y))
    return (x, y), (x + int(round(box.width)), y + int(round(box.height)))


class OverlayRenderer:
    """Draws detections onto an RGBA surface that sits on top of the video."""

    def __init__(self, width: int = 640, height: int = 480):
        self.surface = np.zeros((height, width, 4), dtype=np.uint8)

    @property
    def size(self) -> Tuple[int, int]:
        height, width = self.surface.shape[:2]
        return width, height

    def match_dimensions(self, width: int, height: int) -> None:
        """Resize (and blank) the surface to the video's native resolution."""
        if (width, height) != self.size:
            logger.info(f"🖼️  Overlay resized to {width}x{height}")
        self.surface = np.zeros((height, width, 4), dtype=np.uint8)

    def clear(self) -> None:
        self.surface[:] = 0

    def is_blank(self) -> bool:
        return not self.surface.any()

    def render(self, frame: DetectionFrame) -> None:
        """Replace the surface contents with the given frame's detections."""
        self.clear()

        for face in frame.faces:
            top_left, bottom_right = _corners(face.bounding_box)
            cv2.rectangle(self.surface, top_left, bottom_right, FACE_COLOR, 2)
            for point in face.landmarks or ():
                cv2.circle(self.surface, (int(point.x), int(point.y)), 1, LANDMARK_COLOR, -1)
            if face.expression_scores:
                cv2.putText(
                    self.surface, describe_expression(face.expression_scores),
                    (top_left[0], max(0, top_left[1] - 10)),
                    FONT, 0.6, FACE_COLOR, 2, cv2.LINE_AA
                )

        for obj in frame.objects:
            top_left, bottom_right = _corners(obj.bounding_box)
            cv2.rectangle(self.surface, top_left, bottom_right, OBJECT_COLOR, 2)
            cv2.putText(
                self.surface, f"{obj.label} ({round(obj.score * 100)}%)",
                (top_left[0], max(0, top_left[1] - 5)),
                FONT, 0.5, OBJECT_COLOR, 2, cv2.LINE_AA
            )

    def composite(self, image: np.ndarray, surface: Optional[np.ndarray] = None) -> np.ndarray:
        """Alpha-blend the overlay onto a BGR image and return the result."""
        overlay = self.surface if surface is None else surface
        height, width = image.shape[:2]
        if overlay.shape[:2] != (height, width):
            overlay = cv2.resize(overlay, (width, height), interpolation=cv2.INTER_NEAREST)

        alpha = overlay[:, :, 3:4].astype(np.float32) / 255.0
        blended = image.astype(np.float32) * (1.0 - alpha) + overlay[:, :, :3].astype(np.float32) * alpha
        return blended.astype(np.uint8)
