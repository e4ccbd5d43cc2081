"""
Error types for the voice camera.

None of these are fatal to the process; each one disables a single
capability (detection, camera, voice control) while the rest keeps running.
"""


class VoiceCamError(Exception):
    """Base class for voice camera errors."""


class ModelLoadFailure(VoiceCamError):
    """A perception provider could not load its weights."""


class DeviceUnavailable(VoiceCamError):
    """No capture device could be opened, or access was denied."""


class RecognitionTransient(VoiceCamError):
    """The speech recognition session failed and should be restarted."""


class FrameProviderFailure(VoiceCamError):
    """A perception provider raised while processing a single frame."""

    def __init__(self, provider: str, cause: BaseException):
        super().__init__(f"{provider} provider failed: {cause}")
        self.provider = provider
        self.cause = cause
