"""
Shared data types passed between the camera, perception and overlay layers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


# Fixed label set reported by the face-perception provider, in scan order.
EXPRESSION_LABELS = (
    "neutral",
    "happy",
    "sad",
    "angry",
    "fearful",
    "disgusted",
    "surprised",
)


class CameraStatus(Enum):
    OFF = "off"
    STARTING = "starting"
    ON = "on"
    STOPPING = "stopping"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned box in video pixel coordinates."""
    x: float
    y: float
    width: float
    height: float


@dataclass
class FaceDetection:
    bounding_box: Rect
    expression_scores: Dict[str, float]
    landmarks: Optional[List[Point]] = None


@dataclass
class ObjectDetection:
    bounding_box: Rect
    label: str
    score: float


@dataclass
class DetectionFrame:
    """Results of one detection loop iteration. Never stored past rendering."""
    faces: List[FaceDetection] = field(default_factory=list)
    objects: List[ObjectDetection] = field(default_factory=list)
