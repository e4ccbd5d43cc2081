"""
Per-frame detection loop that feeds the overlay and the expression aggregator.
"""

import asyncio
import logging
from typing import Optional

from ..utils.config import config
from .errors import FrameProviderFailure
from .types import DetectionFrame

logger = logging.getLogger(__name__)


class DetectionLoop:
    """Runs face and object detection on the live video once per refresh.

    One asyncio task is started per camera generation. Each iteration checks
    that the models are ready and the video is playing, awaits the face
    provider and then the object provider (or both at once when
    ``concurrent`` is set), and applies both results to the same frame. The
    task exits as soon as the lifecycle manager's generation moves on, and
    results that resolve after that are dropped.

    Provider calls have no timeout: a provider that never returns stalls its
    loop until the camera is stopped.
    """

    def __init__(self, session, surface, models, renderer, aggregator,
                 refresh_interval: float = config.REFRESH_INTERVAL,
                 concurrent: bool = config.DETECT_CONCURRENTLY):
        self.session = session
        self.surface = surface
        self.models = models
        self.renderer = renderer
        self.aggregator = aggregator
        self.refresh_interval = refresh_interval
        self.concurrent = concurrent
        self._task: Optional[asyncio.Task] = None

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def begin(self, generation: int) -> asyncio.Task:
        """Start the loop for a camera generation."""
        if self._task is not None and not self._task.done():
            logger.debug("Previous detection loop still winding down")
        self._task = asyncio.create_task(self._run(generation), name=f"detection-loop-{generation}")
        self._task.add_done_callback(self._task_done)
        return self._task

    def _task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"❌ {task.get_name()} crashed; detection stopped", exc_info=error)
            self.session.status_message = f"Detection stopped: {error}"

    async def _run(self, generation: int) -> None:
        width, height = self.surface.native_size
        self.renderer.match_dimensions(width, height)
        logger.info(f"🔁 Detection loop {generation} started ({width}x{height})")

        while self.session.is_current(generation):
            await self.run_once(generation)
            await asyncio.sleep(self.refresh_interval)

        logger.info(f"Detection loop {generation} finished")

    async def _call(self, detect, image):
        try:
            return await detect(image)
        except FrameProviderFailure as e:
            logger.warning(f"⚠️  {e}; skipping its result for this frame")
            return None

    async def run_once(self, generation: int) -> Optional[DetectionFrame]:
        """Run one iteration. Returns the applied frame, or None if nothing was applied."""
        if not self.models.ready or not self.surface.is_playing:
            return None

        image = self.surface.current_frame
        if self.concurrent:
            faces, objects = await asyncio.gather(
                self._call(self.models.detect_faces, image),
                self._call(self.models.detect_objects, image),
            )
        else:
            faces = await self._call(self.models.detect_faces, image)
            objects = await self._call(self.models.detect_objects, image)

        if not self.session.is_current(generation):
            logger.debug(f"Dropping results from stale generation {generation}")
            return None

        frame = DetectionFrame(faces=faces or [], objects=objects or [])
        self.renderer.render(frame)
        if faces is not None:
            self.aggregator.update(frame.faces)
        return frame
