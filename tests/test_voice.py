"""
Tests for the voice command interpreter.
"""

import asyncio
import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from voicecam.core.errors import DeviceUnavailable
from voicecam.core.voice import VoiceCommandInterpreter
from voicecam.utils.command_router import VoiceCommand
from fakes import FakeLifecycle, FakeRecognizer


class TestVoiceCommandInterpreter(unittest.IsolatedAsyncioTestCase):
    """Test transcript dispatch to the camera lifecycle."""

    async def asyncSetUp(self):
        self.recognizer = FakeRecognizer()
        self.lifecycle = FakeLifecycle()
        self.interpreter = VoiceCommandInterpreter(self.recognizer, self.lifecycle)

    async def test_start_listening(self):
        self.interpreter.start()
        self.assertTrue(self.recognizer.started)
        self.assertIsNotNone(self.recognizer.on_transcript)

        self.interpreter.stop()
        self.assertTrue(self.recognizer.stopped)

    async def test_start_camera_transcript(self):
        command = self.interpreter.handle_transcript("Could you please Start Camera")
        await self.interpreter.drain()

        self.assertEqual(command, VoiceCommand.START_CAMERA)
        self.assertEqual(self.lifecycle.starts, 1)
        self.assertEqual(self.lifecycle.stops, 0)

    async def test_stop_camera_transcript(self):
        command = self.interpreter.handle_transcript("please STOP camera now")
        await self.interpreter.drain()

        self.assertEqual(command, VoiceCommand.STOP_CAMERA)
        self.assertEqual(self.lifecycle.stops, 1)

    async def test_unknown_transcript_is_ignored(self):
        command = self.interpreter.handle_transcript("hello world")
        await self.interpreter.drain()

        self.assertEqual(command, VoiceCommand.UNKNOWN)
        self.assertEqual(self.lifecycle.starts, 0)
        self.assertEqual(self.lifecycle.stops, 0)

    async def test_transcript_from_recognizer_thread(self):
        """Test that transcripts delivered off-loop reach the lifecycle."""
        self.interpreter.start()
        await asyncio.to_thread(self.recognizer.on_transcript, "start camera")

        for _ in range(10):
            await asyncio.sleep(0)
            if self.lifecycle.starts:
                break
        await self.interpreter.drain()
        self.assertEqual(self.lifecycle.starts, 1)

    async def test_start_failure_is_logged_not_raised(self):
        lifecycle = FakeLifecycle(start_error=DeviceUnavailable("no camera"))
        interpreter = VoiceCommandInterpreter(self.recognizer, lifecycle)

        with self.assertLogs("voicecam.core.voice", level="WARNING"):
            interpreter.handle_transcript("start camera")
            await interpreter.drain()
            await asyncio.sleep(0)

        self.assertEqual(lifecycle.starts, 1)

    async def test_run_command(self):
        task = self.interpreter.run_command(VoiceCommand.STOP_CAMERA)
        await task
        self.assertEqual(self.lifecycle.stops, 1)
        self.assertIsNone(self.interpreter.run_command(VoiceCommand.UNKNOWN))


if __name__ == "__main__":
    unittest.main()
