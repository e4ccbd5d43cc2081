"""
Voice Operated Camera - live camera control by voice with perception overlays.

A voice-controlled camera featuring:
- Continuous speech recognition for "start camera" / "stop camera"
- Facial expression recognition with spoken feedback
- Generic object detection
- Transparent detection overlays on the live video
"""

__version__ = "1.0.0"
__author__ = "Voice Camera Team"

__all__ = ["core", "utils"]
