"""
Voice command routing for the voice camera.
"""

from enum import Enum


class VoiceCommand(Enum):
    START_CAMERA = "start_camera"
    STOP_CAMERA = "stop_camera"
    UNKNOWN = "unknown"


class CommandRouter:
    """Maps free-form transcripts to camera commands by phrase containment."""

    def __init__(self):
        self._start_camera_triggers = ["start camera"]
        self._stop_camera_triggers = ["stop camera"]

    @staticmethod
    def normalize(recognized_text: str) -> str:
        """Lower-case the text and collapse runs of whitespace."""
        if not recognized_text:
            return ""
        return " ".join(recognized_text.lower().split())

    def should_start_camera(self, recognized_text: str) -> bool:
        """Check if the text contains a start camera command."""
        text = self.normalize(recognized_text)
        return any(trigger in text for trigger in self._start_camera_triggers)

    def should_stop_camera(self, recognized_text: str) -> bool:
        """Check if the text contains a stop camera command."""
        text = self.normalize(recognized_text)
        return any(trigger in text for trigger in self._stop_camera_triggers)

    def classify(self, recognized_text: str) -> VoiceCommand:
        """Return the command for a transcript; start wins if both phrases appear."""
        if self.should_start_camera(recognized_text):
            return VoiceCommand.START_CAMERA
        elif self.should_stop_camera(recognized_text):
            return VoiceCommand.STOP_CAMERA
        return VoiceCommand.UNKNOWN
