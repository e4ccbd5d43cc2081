"""
Perception provider contract and the model holder used by the detection loop.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from .errors import FrameProviderFailure, ModelLoadFailure
from .types import FaceDetection, ObjectDetection

logger = logging.getLogger(__name__)


class PerceptionProvider(ABC):
    """
    Base class for inference providers.

    ``load`` runs once at startup and raises ModelLoadFailure on error;
    ``detect`` takes a BGR frame and returns structured detections.
    Both are blocking and are run off the event loop by PerceptionModels.
    """

    name = "perception"

    @abstractmethod
    def load(self) -> None:
        ...

    @abstractmethod
    def detect(self, frame: np.ndarray) -> list:
        ...

    def release(self) -> None:
        """Optional cleanup hook."""
        pass


class PerceptionModels:
    """Loads the face and object providers and exposes them as async calls."""

    def __init__(self, face_provider: PerceptionProvider, object_provider: PerceptionProvider):
        self.face_provider = face_provider
        self.object_provider = object_provider
        self.ready = False
        self.load_error: Optional[ModelLoadFailure] = None

    async def load(self) -> bool:
        """Load both providers. Detection stays disabled if either fails."""
        logger.info("📂 Loading perception models...")
        results = await asyncio.gather(
            asyncio.to_thread(self.face_provider.load),
            asyncio.to_thread(self.object_provider.load),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                if not isinstance(result, ModelLoadFailure):
                    result = ModelLoadFailure(str(result))
                self.load_error = result
                logger.error(f"✗ Failed to load models: {result}")
                return False
            if isinstance(result, BaseException):
                raise result

        self.ready = True
        logger.info("✅ All models loaded")
        return True

    async def _detect(self, provider: PerceptionProvider, frame: np.ndarray) -> list:
        try:
            return await asyncio.to_thread(provider.detect, frame)
        except Exception as e:
            raise FrameProviderFailure(provider.name, e) from e

    async def detect_faces(self, frame: np.ndarray) -> List[FaceDetection]:
        return await self._detect(self.face_provider, frame)

    async def detect_objects(self, frame: np.ndarray) -> List[ObjectDetection]:
        return await self._detect(self.object_provider, frame)

    def release(self) -> None:
        self.face_provider.release()
        self.object_provider.release()
