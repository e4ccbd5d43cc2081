"""
Speech recognition and speech output for the voice camera.
"""

import queue
import json
import logging
import numpy as np
import threading
from scipy import signal
from typing import Callable, Optional, Tuple

from ..utils.config import config
from .errors import RecognitionTransient

logger = logging.getLogger(__name__)


class AudioProcessor:
    """Handles audio input buffering and the last heard text."""

    def __init__(self):
        self.q = queue.Queue()
        self._audio_lock = threading.Lock()
        self.audio_state = {
            "text": "",
            "is_listening": False
        }

    def audio_callback(self, indata, frames, time, status):
        """Callback for audio input stream."""
        if status:
            logger.debug(f"Audio status: {status}")
        self.q.put(indata.copy())

    def set_text(self, text: str) -> None:
        with self._audio_lock:
            self.audio_state["text"] = text

    def set_listening(self, listening: bool) -> None:
        with self._audio_lock:
            self.audio_state["is_listening"] = listening

    def get_last_text(self) -> str:
        """Get the current recognized text."""
        with self._audio_lock:
            return self.audio_state["text"]

    def is_listening(self) -> bool:
        with self._audio_lock:
            return self.audio_state["is_listening"]


class SpeechRecognizer:
    """Continuous speech recognition using Vosk on a background thread.

    Final transcripts are passed to ``on_transcript`` from the recognition
    thread. If the audio stream fails the session is restarted after
    ``restart_delay`` seconds; it only ends when ``stop`` is called or the
    model cannot be loaded.
    """

    def __init__(self, model_path: str, audio_processor: AudioProcessor,
                 on_transcript: Optional[Callable[[str], None]] = None, cfg=config):
        self.model_path = model_path
        self.audio_processor = audio_processor
        self.on_transcript = on_transcript
        self.config = cfg
        self.model = None
        self.recognizer = None
        self.restart_delay = cfg.RECOGNIZER_RESTART_DELAY
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> bool:
        """Start speech recognition in background thread."""
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._recognition_loop, name="speech-recognizer", daemon=True)
        self._thread.start()
        return True

    def _load_model(self) -> bool:
        logger.info("📂 Loading Vosk model...")
        try:
            import vosk
            self.model = vosk.Model(self.model_path)
        except Exception as e:
            logger.error(f"✗ Failed to load Vosk model from {self.model_path}: {e}")
            logger.error("   Voice control disabled. Run: python scripts/setup_model.py")
            return False
        self.recognizer = vosk.KaldiRecognizer(self.model, self.config.VOSK_SAMPLERATE)
        logger.info("✓ Model loaded")
        return True

    def _recognition_loop(self):
        """Main recognition loop running in separate thread."""
        if not self._load_model():
            return

        while not self._stop_event.is_set():
            try:
                self._listen()
            except RecognitionTransient as e:
                logger.warning(f"⚠️  Recognition interrupted: {e}; restarting in {self.restart_delay:.1f}s")
                self._stop_event.wait(self.restart_delay)
            finally:
                self.audio_processor.set_listening(False)

    def _listen(self):
        """Run one audio session until stopped or the stream fails."""
        try:
            import sounddevice as sd
        except (ImportError, OSError) as e:
            raise RecognitionTransient(f"audio backend unavailable: {e}") from e

        resample_ratio = self.config.VOSK_SAMPLERATE / self.config.MIC_SAMPLERATE
        try:
            with sd.InputStream(
                samplerate=self.config.MIC_SAMPLERATE,
                blocksize=self.config.BLOCKSIZE,
                dtype='float32',
                channels=1,
                device=self.config.AUDIO_DEVICE_ID,
                callback=self.audio_processor.audio_callback
            ):
                logger.info("✅ Audio recognition active! Speak now...")
                self.audio_processor.set_listening(True)

                while not self._stop_event.is_set():
                    try:
                        data = self.audio_processor.q.get(timeout=0.1)
                    except queue.Empty:
                        continue

                    # Resample to the model rate and scale to int16
                    audio_data = data[:, 0]
                    num_output_samples = int(len(audio_data) * resample_ratio)
                    resampled = signal.resample(audio_data, num_output_samples)
                    resampled_int16 = np.int16(np.clip(resampled * 32767, -32768, 32767))

                    if self.recognizer.AcceptWaveform(resampled_int16.tobytes()):
                        result = json.loads(self.recognizer.Result())
                        text = result.get("text", "")
                        if text:
                            self.audio_processor.set_text(text)
                            logger.info(f"🗣️  Recognized: {text}")
                            if self.on_transcript is not None:
                                self.on_transcript(text)
                    else:
                        partial = json.loads(self.recognizer.PartialResult())
                        partial_text = partial.get("partial", "")
                        if partial_text:
                            self.audio_processor.set_text(partial_text)
        except (sd.PortAudioError, ValueError) as e:
            raise RecognitionTransient(str(e)) from e

    def stop(self):
        """Stop speech recognition."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2.0)


class SpeechSynthesizer:
    """Speaks text with pyttsx3 from a dedicated worker thread.

    ``speak`` queues an utterance; ``cancel_all`` drops queued utterances and
    interrupts the one being spoken. The engine is only touched from the
    worker thread: cancelling bumps an epoch, and the worker skips or stops
    any utterance queued under an older one.
    """

    def __init__(self, rate: Optional[int] = config.SPEECH_RATE):
        self.rate = rate
        self.engine = None
        self.disabled = False
        self._queue: "queue.Queue[Optional[Tuple[int, str]]]" = queue.Queue()
        self._lock = threading.Lock()
        self._epoch = 0
        self._speaking_epoch = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._speech_loop, name="speech-synthesizer", daemon=True)
        self._thread.start()

    def _init_engine(self) -> bool:
        try:
            import pyttsx3
            self.engine = pyttsx3.init()
            if self.rate:
                self.engine.setProperty('rate', self.rate)
        except (ImportError, RuntimeError, OSError) as e:
            logger.warning(f"pyttsx3 unavailable; spoken feedback disabled: {e}")
            self.disabled = True
            return False
        self.engine.connect('started-word', self._on_word)
        return True

    def _on_word(self, name, location, length):
        # Runs on the worker thread inside runAndWait
        if self._speaking_epoch != self._epoch:
            self.engine.stop()

    def _speech_loop(self):
        if not self._init_engine():
            return

        while True:
            item = self._queue.get()
            if item is None:
                break
            epoch, text = item
            if epoch != self._epoch:
                continue
            self._speaking_epoch = epoch
            self.engine.say(text)
            self.engine.runAndWait()
            self._speaking_epoch = None

    def speak(self, text: str) -> None:
        if self.disabled:
            return
        with self._lock:
            self._queue.put((self._epoch, text))

    def cancel_all(self) -> None:
        with self._lock:
            self._epoch += 1
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break

    def stop(self) -> None:
        self.cancel_all()
        self._queue.put(None)
        if self._thread:
            self._thread.join(timeout=2.0)
