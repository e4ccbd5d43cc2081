"""
Camera capture and lifecycle management for the voice camera.
"""

import asyncio
import cv2
import os
import json
import logging
from typing import Optional, Tuple

from ..utils.config import config
from .errors import DeviceUnavailable
from .types import CameraStatus

logger = logging.getLogger(__name__)

_BACKENDS = {
    "ANY": cv2.CAP_ANY,
    "V4L2": cv2.CAP_V4L2,
    "DSHOW": cv2.CAP_DSHOW,
    "MSMF": cv2.CAP_MSMF,
    "AVFOUNDATION": cv2.CAP_AVFOUNDATION,
}


class CaptureDevice:
    """Opens and releases the capture stream (a ``cv2.VideoCapture``)."""

    def __init__(self, cfg=config):
        self.config = cfg
        self._cache_path = cfg.CAMERA_CACHE_PATH

    def _load_cached_camera(self) -> Tuple[int, int]:
        """Load cached camera settings."""
        try:
            with open(self._cache_path, 'r') as f:
                data = json.load(f)
                return int(data.get('index', -1)), int(data.get('backend', -1))
        except (OSError, ValueError):
            return -1, -1

    def _save_cached_camera(self, index: int, backend: int) -> None:
        """Save camera settings to cache."""
        try:
            with open(self._cache_path, 'w') as f:
                json.dump({'index': index, 'backend': backend}, f)
            logger.info("💾 Cached camera settings")
        except OSError as e:
            logger.debug(f"Could not write camera cache: {e}")

    def _clear_cached_camera(self) -> None:
        """Clear camera cache."""
        try:
            if os.path.exists(self._cache_path):
                os.remove(self._cache_path)
                logger.info("🗑️  Cleared camera cache")
        except OSError as e:
            logger.debug(f"Could not remove camera cache: {e}")

    def _open(self, index: int, backend: int) -> Optional[cv2.VideoCapture]:
        cap = cv2.VideoCapture(index, backend)
        if cap.isOpened():
            ret, _ = cap.read()
            if ret:
                cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.FRAME_WIDTH)
                cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.FRAME_HEIGHT)
                cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
                return cap
        cap.release()
        return None

    def acquire(self) -> cv2.VideoCapture:
        """Open a camera, preferring configured, then cached, then scanned devices.

        Raises DeviceUnavailable if nothing can be opened.
        """
        backend_name, index = self.config.get_camera_settings()
        backend = _BACKENDS.get(backend_name.upper(), cv2.CAP_ANY)

        cap = self._open(index, backend)
        if cap is not None:
            logger.info(f"✅ Camera opened using backend={backend_name}, index={index}")
            return cap

        cached_index, cached_backend = self._load_cached_camera()
        if cached_index >= 0 and cached_backend >= 0:
            logger.info(f"📦 Trying cached camera backend={cached_backend}, index={cached_index}")
            cap = self._open(cached_index, cached_backend)
            if cap is not None:
                logger.info("✅ Using cached camera")
                return cap
            logger.info("⚠️  Cached camera failed, trying other options...")
            self._clear_cached_camera()

        for name, candidate in _BACKENDS.items():
            for idx in range(0, 3):
                logger.debug(f"… Trying camera backend={name}, index={idx}")
                cap = self._open(idx, candidate)
                if cap is not None:
                    logger.info(f"✅ Camera opened using backend={name}, index={idx}")
                    self._save_cached_camera(idx, candidate)
                    return cap

        raise DeviceUnavailable("no camera could be opened (missing device or permission denied)")

    def release(self, stream) -> None:
        stream.release()


class VideoSurface:
    """Shows the active stream; holds a non-owning reference to it.

    Frames are pulled by ``advance`` at the display cadence and the latest
    one is exposed to the detection loop through ``current_frame``.
    """

    def __init__(self, default_size: Tuple[int, int] = (640, 480)):
        self.stream = None
        self.current_frame = None
        self.ended = False
        self.default_size = default_size
        self._read_lock = asyncio.Lock()

    def attach(self, stream) -> None:
        self.stream = stream
        self.current_frame = None
        self.ended = False

    async def detach(self) -> None:
        """Drop the stream reference once no read is in flight."""
        async with self._read_lock:
            self.stream = None
            self.current_frame = None
            self.ended = False

    @property
    def is_playing(self) -> bool:
        return self.stream is not None and not self.ended and self.current_frame is not None

    @property
    def native_size(self) -> Tuple[int, int]:
        if self.current_frame is not None:
            height, width = self.current_frame.shape[:2]
            return width, height
        if self.stream is not None:
            width = int(self.stream.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
            height = int(self.stream.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
            if width > 0 and height > 0:
                return width, height
        return self.default_size

    async def advance(self) -> bool:
        """Read the next frame from the attached stream. Returns False when nothing was read."""
        async with self._read_lock:
            stream = self.stream
            if stream is None or self.ended:
                return False
            ret, frame = await asyncio.to_thread(stream.read)
            if not ret:
                logger.error("⚠️  Camera read failed; video ended")
                self.ended = True
                return False
            self.current_frame = frame
            return True


class CameraLifecycleManager:
    """Owns the camera session: ``Off → Starting → On → Stopping → Off``.

    ``start`` and ``stop`` are safe to call repeatedly and from overlapping
    tasks; calls that don't apply to the current status are no-ops. Every
    transition to On and every stop bumps ``generation`` so a detection loop
    started for an older session can tell it is stale.
    """

    def __init__(self, device: CaptureDevice, surface: VideoSurface, renderer, aggregator):
        self.device = device
        self.surface = surface
        self.renderer = renderer
        self.aggregator = aggregator
        self.detection_loop = None

        self.status = CameraStatus.OFF
        self.stream = None
        self.generation = 0
        self.status_message = "Say 'start camera' or use the keys"
        self._stop_requested = False

    @property
    def is_on(self) -> bool:
        return self.status is CameraStatus.ON

    def is_current(self, generation: int) -> bool:
        return self.is_on and self.stream is not None and generation == self.generation

    async def start(self) -> bool:
        """Open the camera and begin detection. Returns False if not started."""
        if self.status is not CameraStatus.OFF:
            logger.info(f"Camera start ignored (status={self.status.value})")
            return False

        self.status = CameraStatus.STARTING
        self._stop_requested = False
        logger.info("📹 Opening camera...")
        try:
            stream = await asyncio.to_thread(self.device.acquire)
        except Exception as e:
            self.status = CameraStatus.OFF
            self.status_message = f"Camera unavailable: {e}"
            logger.error(f"❌ Cannot access camera: {e}")
            if isinstance(e, DeviceUnavailable):
                raise
            raise DeviceUnavailable(str(e)) from e

        if self._stop_requested:
            await asyncio.to_thread(self.device.release, stream)
            self.status = CameraStatus.OFF
            self.status_message = "Camera stopped"
            logger.info("Camera stop requested during start; released stream")
            return False

        self.stream = stream
        self.surface.attach(stream)
        self.generation += 1
        self.status = CameraStatus.ON
        self.status_message = "Camera started"
        logger.info(f"✅ Camera started (generation {self.generation})")

        if self.detection_loop is not None:
            self.detection_loop.begin(self.generation)
        return True

    async def stop(self) -> bool:
        """Release the camera and clear the overlay. Returns False if nothing to stop."""
        if self.status is CameraStatus.STARTING:
            self._stop_requested = True
            return False
        if self.status is not CameraStatus.ON:
            return False

        self.status = CameraStatus.STOPPING
        self.generation += 1
        stream, self.stream = self.stream, None
        try:
            await self.surface.detach()
            if stream is not None:
                await asyncio.to_thread(self.device.release, stream)
        except Exception as e:
            logger.error(f"⚠️  Error releasing camera: {e}")
        finally:
            self.renderer.clear()
            self.aggregator.reset()
            self.status = CameraStatus.OFF
            self.status_message = "Camera stopped"
        logger.info("⏹️ Camera stopped")
        return True
