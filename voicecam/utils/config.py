"""
Configuration management for the voice camera.
"""

import os
from typing import Optional


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


class Config:
    """Configuration settings for the voice camera."""

    def __init__(self):
        # Model assets
        self.MODEL_DIR = os.getenv("VOICECAM_MODEL_DIR", "./models")
        self.VOSK_MODEL_PATH = os.getenv(
            "VOSK_MODEL_PATH", os.path.join(self.MODEL_DIR, "vosk-model-small-en-us-0.15")
        )
        self.LANDMARK_MODEL_PATH = os.getenv(
            "VOICECAM_LANDMARK_MODEL",
            os.path.join(self.MODEL_DIR, "shape_predictor_68_face_landmarks.dat"),
        )
        self.EMOTION_DETECTOR_BACKEND = "skip"
        self.OBJECT_MODEL = os.getenv("VOICECAM_OBJECT_MODEL", "yolov8n.pt")
        self.OBJECT_MIN_SCORE = 0.5
        self.OBJECT_MAX_DETECTIONS = 20
        self.FACE_UPSAMPLE = 0

        # Audio settings (None = system default input)
        self.AUDIO_DEVICE_ID = _optional_int(os.getenv("VOICECAM_AUDIO_DEVICE"))
        self.MIC_SAMPLERATE = 44100
        self.VOSK_SAMPLERATE = 16000
        self.BLOCKSIZE = 11025
        self.RECOGNIZER_RESTART_DELAY = 1.0

        # Speech output
        self.SPEECH_RATE = 170

        # Camera settings
        self.CAMERA_BACKEND = os.getenv("VOICECAM_BACKEND", "ANY")
        self.CAMERA_INDEX = int(os.getenv("VOICECAM_INDEX", "0"))
        self.FRAME_WIDTH = 640
        self.FRAME_HEIGHT = 480
        self.CAMERA_CACHE_PATH = ".camera_cache.json"

        # Detection loop
        self.REFRESH_INTERVAL = 1.0 / 30.0
        self.DETECT_CONCURRENTLY = os.getenv("VOICECAM_CONCURRENT", "0") == "1"

        # UI
        self.WINDOW_NAME = "Voice Operated Camera"
        self.LOG_LEVEL = os.getenv("VOICECAM_LOG_LEVEL", "INFO")

    def get_model_path(self) -> str:
        """Get the path to the Vosk model directory."""
        return self.VOSK_MODEL_PATH

    def get_audio_device_id(self) -> Optional[int]:
        """Get the audio device ID."""
        return self.AUDIO_DEVICE_ID

    def get_camera_settings(self) -> tuple:
        """Get camera backend and index settings."""
        return self.CAMERA_BACKEND, self.CAMERA_INDEX


# Global config instance
config = Config()
