"""
Application controller: wires the camera, perception, voice and overlay
components together and runs the preview window.
"""

import asyncio
import cv2
import logging
import numpy as np

from ..utils.command_router import VoiceCommand
from ..utils.config import config
from .audio import AudioProcessor, SpeechRecognizer, SpeechSynthesizer
from .camera import CameraLifecycleManager, CaptureDevice, VideoSurface
from .detection_loop import DetectionLoop
from .expression import ExpressionAggregator
from .face_detection import FaceExpressionProvider
from .object_detection import ObjectDetectionProvider
from .overlay import OverlayRenderer
from .perception import PerceptionModels
from .voice import VoiceCommandInterpreter

logger = logging.getLogger(__name__)

FONT = cv2.FONT_HERSHEY_SIMPLEX

_KEY_COMMANDS = {
    ord('s'): VoiceCommand.START_CAMERA,
    ord('x'): VoiceCommand.STOP_CAMERA,
}


class VoiceCameraApp:
    """Main controller for the voice operated camera."""

    def __init__(self, cfg=config):
        self.config = cfg
        frame_size = (cfg.FRAME_WIDTH, cfg.FRAME_HEIGHT)

        self.synthesizer = SpeechSynthesizer(cfg.SPEECH_RATE)
        self.aggregator = ExpressionAggregator(self.synthesizer)
        self.renderer = OverlayRenderer(*frame_size)
        self.surface = VideoSurface(default_size=frame_size)
        self.models = PerceptionModels(FaceExpressionProvider(cfg), ObjectDetectionProvider(cfg))

        self.lifecycle = CameraLifecycleManager(
            CaptureDevice(cfg), self.surface, self.renderer, self.aggregator
        )
        self.detection_loop = DetectionLoop(
            self.lifecycle, self.surface, self.models, self.renderer, self.aggregator,
            refresh_interval=cfg.REFRESH_INTERVAL,
            concurrent=cfg.DETECT_CONCURRENTLY,
        )
        self.lifecycle.detection_loop = self.detection_loop

        self.audio_processor = AudioProcessor()
        self.voice = VoiceCommandInterpreter(
            SpeechRecognizer(cfg.get_model_path(), self.audio_processor, cfg=cfg),
            self.lifecycle,
        )
        self._quit = False

    def status_text(self) -> str:
        if self.models.load_error is not None:
            return f"Detection disabled: {self.models.load_error}"
        if not self.models.ready:
            return "Loading models..."
        return self.lifecycle.status_message

    def _wrap_text(self, text: str, max_width: int, max_lines: int = 2):
        """Wrap text to fit within width."""
        if not text:
            return []

        font_scale = 0.6
        thickness = 1
        words = text.encode('ascii', 'ignore').decode().split()
        lines = []
        current = ""

        for word in words:
            candidate = word if current == "" else current + " " + word
            (w, _), _ = cv2.getTextSize(candidate, FONT, font_scale, thickness)
            if w <= max_width:
                current = candidate
            else:
                if current:
                    lines.append(current)
                current = word
                if len(lines) >= max_lines:
                    break

        if current and len(lines) < max_lines:
            lines.append(current)

        if len(words) > len(" ".join(lines).split()) and lines:
            lines[-1] = lines[-1] + "..."

        return lines

    def compose_view(self) -> np.ndarray:
        """Current video frame with the overlay and status text drawn on it."""
        frame = self.surface.current_frame
        if frame is None:
            frame = np.zeros((self.config.FRAME_HEIGHT, self.config.FRAME_WIDTH, 3), dtype=np.uint8)
        else:
            frame = self.renderer.composite(frame)

        camera_on = self.lifecycle.is_on
        cv2.putText(frame, self.status_text(), (10, 25), FONT, 0.6, (255, 255, 255), 2, cv2.LINE_AA)
        cv2.putText(
            frame, "Camera ON" if camera_on else "Camera OFF", (10, 50),
            FONT, 0.6, (0, 200, 0) if camera_on else (0, 0, 255), 2, cv2.LINE_AA
        )
        if self.aggregator.display_text:
            cv2.putText(
                frame, f"Expression: {self.aggregator.display_text}", (10, 75),
                FONT, 0.6, (255, 255, 255), 2, cv2.LINE_AA
            )

        # Last heard speech along the bottom edge
        heard = self.audio_processor.get_last_text()
        lines = self._wrap_text(heard, frame.shape[1] - 40)
        if lines:
            (_, line_h), _ = cv2.getTextSize("Ag", FONT, 0.6, 1)
            total_height = len(lines) * (line_h + 6) + 14
            overlay = frame.copy()
            cv2.rectangle(overlay, (0, frame.shape[0] - total_height), (frame.shape[1], frame.shape[0]), (0, 0, 0), -1)
            cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, frame)
            base_y = frame.shape[0] - 14 - (len(lines) - 1) * (line_h + 6)
            for i, line in enumerate(lines):
                cv2.putText(frame, line, (20, base_y + i * (line_h + 6)), FONT, 0.6, (0, 255, 0), 1, cv2.LINE_AA)
        return frame

    def _handle_key(self, key: int) -> None:
        if key == ord('q'):
            self._quit = True
        elif key in _KEY_COMMANDS:
            self.voice.run_command(_KEY_COMMANDS[key])

    async def run(self) -> None:
        """Run until 'q' is pressed or the task is cancelled."""
        self.synthesizer.start()
        self.voice.start()
        load_task = asyncio.create_task(self.models.load(), name="load-models")

        show_window = True
        try:
            cv2.namedWindow(self.config.WINDOW_NAME, cv2.WINDOW_NORMAL)
        except cv2.error as e:
            logger.warning(f"Could not create preview window; running headless: {e}")
            show_window = False

        logger.info("✅ Ready. Say 'start camera' / 'stop camera', or press s / x. Press 'q' to quit.")
        try:
            while not self._quit:
                if self.lifecycle.is_on:
                    await self.surface.advance()
                if show_window:
                    cv2.imshow(self.config.WINDOW_NAME, self.compose_view())
                    self._handle_key(cv2.waitKey(1) & 0xFF)
                await asyncio.sleep(self.config.REFRESH_INTERVAL)
        finally:
            await self._cleanup(load_task)

    async def _cleanup(self, load_task: asyncio.Task) -> None:
        """Clean up resources."""
        await self.voice.drain()
        await self.lifecycle.stop()
        if not load_task.done():
            load_task.cancel()
        self.voice.stop()
        self.synthesizer.stop()
        self.models.release()
        try:
            cv2.destroyAllWindows()
        except cv2.error:
            pass
        logger.info("✅ Voice camera stopped.")
