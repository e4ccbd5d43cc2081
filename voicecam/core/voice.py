"""
Voice command interpreter: turns recognized speech into camera start/stop.
"""

import asyncio
import logging
from typing import Optional, Set

from ..utils.command_router import CommandRouter, VoiceCommand
from .errors import VoiceCamError

logger = logging.getLogger(__name__)


class VoiceCommandInterpreter:
    """Listens for the whole lifetime of the app, whatever the camera state.

    Transcripts arrive on the recognizer's thread and are handed over to the
    event loop, so camera start/stop always run on the loop, one after the
    other. Unrecognized phrases are ignored.
    """

    def __init__(self, recognizer, lifecycle, router: Optional[CommandRouter] = None):
        self.recognizer = recognizer
        self.lifecycle = lifecycle
        self.router = router or CommandRouter()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Set[asyncio.Task] = set()

    def start(self) -> None:
        """Start listening. Must be called from the running event loop."""
        self._loop = asyncio.get_running_loop()
        self.recognizer.on_transcript = self._on_transcript
        logger.info("🎤 Starting speech recognition...")
        self.recognizer.start()

    def stop(self) -> None:
        self.recognizer.stop()

    def _on_transcript(self, text: str) -> None:
        # Called from the recognizer thread
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.handle_transcript, text)

    def handle_transcript(self, text: str) -> VoiceCommand:
        command = self.router.classify(text)
        if command is not VoiceCommand.UNKNOWN:
            logger.info(f"🎙 Voice command: {command.value} ({text!r})")
            self.run_command(command)
        return command

    def run_command(self, command: VoiceCommand) -> Optional[asyncio.Task]:
        """Schedule the lifecycle action for a command on the event loop."""
        if command is VoiceCommand.START_CAMERA:
            return self._spawn(self.lifecycle.start())
        elif command is VoiceCommand.STOP_CAMERA:
            return self._spawn(self.lifecycle.stop())
        return None

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if isinstance(error, VoiceCamError):
            logger.warning(f"Voice command failed: {error}")
        elif error is not None:
            logger.error("Voice command crashed", exc_info=error)

    async def drain(self) -> None:
        """Wait for any in-flight start/stop commands."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
