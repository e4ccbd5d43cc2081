"""
Dominant expression selection and spoken-feedback debouncing.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Tuple

from .types import FaceDetection

logger = logging.getLogger(__name__)

NO_FACE_TEXT = "No face detected"


def dominant_expression(scores: Mapping[str, float]) -> Tuple[str, float]:
    """Return the (label, score) with the highest score.

    Labels are scanned in mapping order with a strict ``>`` comparison, so on
    equal scores the label that appears first wins.
    """
    best_label = None
    best_score = 0.0
    for label, score in scores.items():
        if best_label is None or score > best_score:
            best_label, best_score = label, score
    if best_label is None:
        raise ValueError("expression scores are empty")
    return best_label, best_score


def format_confidence(score: float) -> str:
    return f"{score * 100:.2f}%"


def describe_expression(scores: Mapping[str, float]) -> str:
    """Label text drawn next to a face, e.g. ``happy (91.00%)``."""
    label, score = dominant_expression(scores)
    return f"{label} ({format_confidence(score)})"


@dataclass
class SpeechDebounceState:
    last_spoken_label: Optional[str] = None

    def reset(self) -> None:
        self.last_spoken_label = None


class ExpressionAggregator:
    """Turns per-frame face detections into display text and spoken feedback.

    Only the first face of a frame is considered. A new utterance is spoken
    only when the dominant label differs from the last one spoken; a frame
    without faces forgets the last label so the next face is announced again.
    """

    def __init__(self, synthesizer, state: Optional[SpeechDebounceState] = None):
        self.synthesizer = synthesizer
        self.state = state if state is not None else SpeechDebounceState()
        self.display_text = ""
        self.confidence_text = ""

    def update(self, faces: Sequence[FaceDetection]) -> Optional[str]:
        """Apply one frame's faces. Returns the utterance spoken, if any."""
        if not faces:
            self.display_text = NO_FACE_TEXT
            self.confidence_text = ""
            self.state.reset()
            return None

        label, score = dominant_expression(faces[0].expression_scores)
        self.confidence_text = format_confidence(score)
        self.display_text = f"{label} ({self.confidence_text})"

        utterance = None
        if label != self.state.last_spoken_label:
            utterance = f"You look {label}"
            self.synthesizer.cancel_all()
            self.synthesizer.speak(utterance)
            logger.info(f"🔊 {utterance}")
        self.state.last_spoken_label = label
        return utterance

    def reset(self) -> None:
        """Clear the displayed expression and the debounce slot."""
        self.display_text = ""
        self.confidence_text = ""
        self.state.reset()
