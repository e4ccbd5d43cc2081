"""
Tests for the audio helpers that don't need a microphone or speakers.
"""

import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from voicecam.core.audio import AudioProcessor, SpeechRecognizer, SpeechSynthesizer
from voicecam.core.errors import RecognitionTransient
from voicecam.utils.config import Config


class TestAudioProcessor(unittest.TestCase):
    """Test shared audio state."""

    def test_text_and_listening_state(self):
        processor = AudioProcessor()
        self.assertEqual(processor.get_last_text(), "")
        self.assertFalse(processor.is_listening())

        processor.set_text("start camera")
        processor.set_listening(True)
        self.assertEqual(processor.get_last_text(), "start camera")
        self.assertTrue(processor.is_listening())


class FlakyRecognizer(SpeechRecognizer):
    """Fails its first audio session, then stops on the second."""

    def __init__(self):
        config = Config()
        config.RECOGNIZER_RESTART_DELAY = 0
        super().__init__("unused", AudioProcessor(), cfg=config)
        self.sessions = 0

    def _load_model(self):
        return True

    def _listen(self):
        self.sessions += 1
        if self.sessions == 1:
            raise RecognitionTransient("device unplugged")
        self._stop_event.set()


class TestSpeechRecognizer(unittest.TestCase):
    """Test session restarts."""

    def test_restarts_after_transient_failure(self):
        recognizer = FlakyRecognizer()
        with self.assertLogs("voicecam.core.audio", level="WARNING"):
            recognizer._recognition_loop()
        self.assertEqual(recognizer.sessions, 2)
        self.assertFalse(recognizer.audio_processor.is_listening())

    def test_model_failure_disables_voice(self):
        recognizer = SpeechRecognizer("/nonexistent/model", AudioProcessor())
        recognizer._load_model = lambda: False
        recognizer._recognition_loop()
        self.assertFalse(recognizer.is_running)


class TestSpeechSynthesizer(unittest.TestCase):
    """Test utterance queueing without a speech engine."""

    def test_cancel_all_drops_queued_utterances(self):
        synth = SpeechSynthesizer()
        synth.speak("You look happy")
        synth.speak("You look sad")
        synth.cancel_all()
        self.assertTrue(synth._queue.empty())

    def test_disabled_synthesizer_ignores_speech(self):
        synth = SpeechSynthesizer()
        synth.disabled = True
        synth.speak("You look happy")
        self.assertTrue(synth._queue.empty())


class FakeEngine:
    """Records pyttsx3 calls; runAndWait fires one word callback per word."""

    def __init__(self):
        self.said = []
        self.spoken_words = []
        self.stopped = 0
        self.on_word = None
        self.before_word = None
        self._pending = None

    def say(self, text):
        self.said.append(text)
        self._pending = text

    def runAndWait(self):
        for word in self._pending.split():
            if self.before_word is not None:
                self.before_word()
            self.on_word('utterance', 0, len(word))
            if self.stopped:
                break
            self.spoken_words.append(word)

    def stop(self):
        self.stopped += 1


class FakeEngineSynthesizer(SpeechSynthesizer):
    def __init__(self):
        super().__init__()
        self.fake_engine = FakeEngine()

    def _init_engine(self):
        self.engine = self.fake_engine
        self.engine.on_word = self._on_word
        return True


class TestSpeechWorker(unittest.TestCase):
    """Test cancellation handled on the worker thread."""

    def test_speaks_queued_utterances(self):
        synth = FakeEngineSynthesizer()
        synth.speak("You look happy")
        synth._queue.put(None)
        synth._speech_loop()
        self.assertEqual(synth.fake_engine.said, ["You look happy"])
        self.assertEqual(synth.fake_engine.stopped, 0)

    def test_utterance_taken_before_cancel_is_skipped(self):
        synth = FakeEngineSynthesizer()
        synth.speak("You look happy")
        in_hand = synth._queue.get()
        synth.cancel_all()
        synth._queue.put(in_hand)
        synth.speak("You look sad")
        synth._queue.put(None)

        synth._speech_loop()
        self.assertEqual(synth.fake_engine.said, ["You look sad"])

    def test_cancel_interrupts_current_utterance(self):
        synth = FakeEngineSynthesizer()
        engine = synth.fake_engine
        engine.before_word = lambda: synth.cancel_all() if engine.spoken_words == ["You"] else None
        synth.speak("You look happy")
        synth._queue.put(None)

        synth._speech_loop()
        self.assertEqual(engine.stopped, 1)
        self.assertEqual(engine.spoken_words, ["You"])


if __name__ == "__main__":
    unittest.main()
