"""
Recording session controller.

Drives the pipeline lifecycle: waits for both models to load, starts the
worker and audio source, auto-stops after a fixed duration, and on every
consumer tick pulls finished utterances from the result queue into the
language switch and the transcript.
"""

import logging
import threading
from typing import Callable, List, NamedTuple, Optional, Protocol, Sequence

import numpy as np

from . import config
from .arbiter import ArbitrationResult
from .exceptions import ModelLoadError
from .language_switch import ActiveLanguage, LanguageMode, LanguageSwitcher
from .transcript import TextTransform, TranscriptAccumulator, simplified_to_traditional
from .worker import DualRecognizerEngine

logger = logging.getLogger(__name__)

INT16_MAX = 32767


class AudioSource(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


class StopSummary(NamedTuple):
    detected_audio: bool
    final_transcript: str


class RecordingSession:
    """Start/stop orchestration plus the consumer side of the pipeline."""

    def __init__(
        self,
        engine: DualRecognizerEngine,
        audio_source: Optional[AudioSource] = None,
        transform: Optional[TextTransform] = simplified_to_traditional,
        switcher: Optional[LanguageSwitcher] = None,
        audio_threshold: float = config.AUDIO_LEVEL_THRESHOLD,
        readiness_interval: float = config.READINESS_POLL_SECONDS,
        timer_tick: float = config.TIMER_TICK_SECONDS,
    ):
        self.engine = engine
        self.frame_queue = engine.frame_queue
        self.result_queue = engine.result_queue
        self.audio_source = audio_source
        self.switcher = switcher or LanguageSwitcher()
        self.accumulator = TranscriptAccumulator(transform)
        self.audio_threshold = audio_threshold
        self.readiness_interval = readiness_interval
        self.timer_tick = timer_tick

        # Listeners
        self._result_listeners: List[Callable[[ArbitrationResult], None]] = []
        self._text_listeners: List[Callable[[str], None]] = []
        self._status_listeners: List[Callable[[str], None]] = []

        # Session state
        self.is_recording = False
        self.status = "Ready to record"
        self.load_error: Optional[str] = None
        self._lock = threading.RLock()
        self._loader_thread: Optional[threading.Thread] = None
        self._wait_thread: Optional[threading.Thread] = None
        self._wait_cancel = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None
        self._timer_cancel = threading.Event()

        # Audio level tracking
        self.has_detected_audio = False
        self.current_audio_level = 0.0
        self.average_audio_level = 0.0
        self._total_audio_level = 0.0
        self._audio_frames = 0

    # --- subscriptions -------------------------------------------------

    def on_result(self, listener: Callable[[ArbitrationResult], None]):
        self._result_listeners.append(listener)

    def on_text(self, listener: Callable[[str], None]):
        self._text_listeners.append(listener)

    def on_status(self, listener: Callable[[str], None]):
        self._status_listeners.append(listener)

    def on_language_changed(self, listener: Callable[[ActiveLanguage], None]):
        self.switcher.add_listener(listener)

    def _emit(self, listeners, value):
        for listener in list(listeners):
            try:
                listener(value)
            except Exception as e:
                logger.error(f"Session listener failed: {e}")

    def _set_status(self, status: str):
        self.status = status
        logger.debug(f"Status: {status}")
        self._emit(self._status_listeners, status)

    # --- model loading -------------------------------------------------

    def load_models(self, background: bool = True):
        """Load both profiles' models, in a background thread by default."""
        if background:
            if self._loader_thread is not None and self._loader_thread.is_alive():
                return
            self._loader_thread = threading.Thread(
                target=self._load_models, name="ModelLoader", daemon=True
            )
            self._loader_thread.start()
        else:
            self._load_models()

    def _load_models(self):
        self.load_error = None
        for profile in self.engine.profiles.values():
            self._set_status(f"Loading {profile.name} model from: {profile.model_path}")
            try:
                self.engine.factory.load(profile)
            except ModelLoadError as e:
                self.load_error = str(e)
                logger.error(str(e))
                self._set_status(f"Failed to load models: {e.reason}")
                return
        self._set_status("Ready to record")

    def is_ready(self) -> bool:
        return self.engine.models_loaded() and not self.engine.is_running

    # --- lifecycle ------------------------------------------------------

    def start(
        self,
        duration: Optional[float] = config.RECORDING_DURATION_SECONDS,
        language_mode: LanguageMode = LanguageMode.AUTO,
    ) -> bool:
        """Start recording. Returns False if already recording, still waiting for models
        or the microphone could not be opened."""
        with self._lock:
            if self.is_recording:
                return False

            if not self.is_ready():
                self._set_status("Waiting for engines to initialize...")
                logger.warning("Engines not ready yet, delaying start...")
                self._schedule_start(duration, language_mode)
                return False

            return self._begin(duration, language_mode)

    def _schedule_start(self, duration, language_mode):
        if self._wait_thread is not None and self._wait_thread.is_alive():
            return
        cancel = threading.Event()
        self._wait_cancel = cancel
        self._wait_thread = threading.Thread(
            target=self._wait_for_ready,
            args=(duration, language_mode, cancel),
            name="ReadinessWait",
            daemon=True,
        )
        self._wait_thread.start()

    def _wait_for_ready(self, duration, language_mode, cancel: threading.Event):
        while not cancel.wait(self.readiness_interval):
            with self._lock:
                if cancel.is_set():
                    break
                if self.load_error:
                    self._set_status(self.load_error)
                    return
                if self.is_ready():
                    logger.info("Engines ready, starting recording...")
                    if not self.is_recording:
                        self._begin(duration, language_mode)
                    return
            logger.debug("Waiting for engines to initialize...")
            self._set_status("Waiting for engines to initialize...")
        logger.info("Delayed start cancelled")

    def _begin(self, duration, language_mode):
        self.has_detected_audio = False
        self.current_audio_level = 0.0
        self.average_audio_level = 0.0
        self._total_audio_level = 0.0
        self._audio_frames = 0
        self.accumulator.reset()
        self.switcher.set_mode(language_mode)

        stale = self.frame_queue.clear() + self.result_queue.clear()
        if stale:
            logger.debug(f"Dropped {stale} stale queue items")

        self.is_recording = True
        self.engine.start()
        if self.audio_source is not None:
            try:
                self.audio_source.start()
            except Exception as e:
                logger.error(f"Failed to start audio source: {e}")
                self.is_recording = False
                self.engine.stop()
                self._set_status(f"Failed to start microphone: {e}")
                return False

        if duration is not None and duration > 0:
            cancel = threading.Event()
            self._timer_cancel = cancel
            self._timer_thread = threading.Thread(
                target=self._recording_timer,
                args=(duration, cancel),
                name="RecordingTimer",
                daemon=True,
            )
            self._timer_thread.start()

        self._set_status("Recording... Speak now!")
        logger.info(f"Recording started (duration: {duration}, mode: {language_mode.value})")
        return True

    def _recording_timer(self, duration: float, cancel: threading.Event):
        remaining = duration
        while remaining > 0 and not cancel.is_set():
            audio_status = "Audio OK" if self.has_detected_audio else "Low audio"
            self._set_status(f"Recording... {remaining:.0f}s ({audio_status})")
            if cancel.wait(self.timer_tick):
                return
            remaining -= self.timer_tick

        if not cancel.is_set():
            logger.info("Recording duration reached, stopping")
            self.stop()

    def stop(self) -> StopSummary:
        """Stop recording and return whether audio was heard plus the transcript so far."""
        self._wait_cancel.set()

        with self._lock:
            if not self.is_recording:
                return self.summary()

            self.is_recording = False
            self._timer_cancel.set()

            if self.audio_source is not None:
                try:
                    self.audio_source.stop()
                except Exception as e:
                    logger.error(f"Error stopping audio source: {e}")

            self.engine.stop()

            if self.has_detected_audio:
                self._set_status(f"Audio detected! Avg: {self.average_audio_level:.4f}")
            else:
                self._set_status("No audio detected - check microphone")

            summary = self.summary()
            logger.info(f"Recording stopped. Audio detected: {summary.detected_audio}")
            return summary

    def summary(self) -> StopSummary:
        return StopSummary(self.has_detected_audio, self.accumulator.current_result)

    def close(self):
        self.stop()
        self.engine.close()
        self.engine.factory.close()

    # --- data path -------------------------------------------------------

    def on_audio_frame(self, samples: Sequence[int]):
        """Capture callback: track the input level and enqueue the frame."""
        if not self.is_recording:
            return

        frame = np.asarray(samples, dtype=np.int16).reshape(-1)
        if frame.size == 0:
            return

        level = float(np.mean(np.abs(frame.astype(np.float32)))) / INT16_MAX
        self.current_audio_level = level
        self._total_audio_level += level
        self._audio_frames += 1
        self.average_audio_level = self._total_audio_level / self._audio_frames
        if level > self.audio_threshold:
            self.has_detected_audio = True

        self.frame_queue.push_samples(frame)

    def poll(self) -> Optional[ArbitrationResult]:
        """Consumer tick: handle at most one finished utterance, never blocking."""
        result = self.result_queue.try_pop()
        if result is None:
            return None

        self.switcher.observe(result.best_text)
        self.accumulator.add(result)
        self._emit(self._result_listeners, result)
        self._emit(self._text_listeners, result.best_text)
        return result

    def poll_all(self) -> int:
        handled = 0
        while self.poll() is not None:
            handled += 1
        return handled

    @property
    def transcript(self) -> str:
        return self.accumulator.current_result

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
