"""
Dual recognizer worker.

A single background thread drains the frame queue, feeds every frame to
both recognizers (A then B), and whenever either one closes an utterance
arbitrates the pair, publishes the result and replaces both recognizers.
"""

import logging
import threading
import time
from typing import Dict, Optional

import numpy as np

from . import config
from .arbiter import ConfidenceArbiter
from .engine import EngineProfile, EngineSlot, Recognizer, RecognizerFactory
from .frame_queue import FrameQueue, ResultQueue

logger = logging.getLogger(__name__)


class DualRecognizerEngine:
    """Owns both recognizer instances; only the worker thread touches them."""

    def __init__(
        self,
        profiles: Dict[EngineSlot, EngineProfile],
        factory: RecognizerFactory,
        frame_queue: FrameQueue,
        result_queue: ResultQueue,
        arbiter: Optional[ConfidenceArbiter] = None,
        idle_wait: float = config.IDLE_WAIT_SECONDS,
        join_timeout: float = config.JOIN_TIMEOUT_SECONDS,
    ):
        self.profiles = profiles
        self.factory = factory
        self.frame_queue = frame_queue
        self.result_queue = result_queue
        self.arbiter = arbiter or ConfidenceArbiter(profiles)
        self.idle_wait = idle_wait
        self.join_timeout = join_timeout

        self._recognizers: Dict[EngineSlot, Optional[Recognizer]] = {
            EngineSlot.A: None,
            EngineSlot.B: None,
        }
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

        # Stats
        self.frames_processed = 0
        self.utterances = 0
        self.recognizer_generation = 0
        self.start_time = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def models_loaded(self) -> bool:
        return all(self.factory.is_loaded(profile) for profile in self.profiles.values())

    def start(self):
        """Start the worker thread; no-op while it is already running."""
        with self._lock:
            if self._thread is not None:
                if self._thread.is_alive():
                    logger.debug("Dual recognizer worker already running")
                    return
                self._thread = None

            self._stop_event.clear()
            self.start_time = time.time()
            self._thread = threading.Thread(
                target=self._run, name="DualRecognizerWorker", daemon=True
            )
            self._thread.start()
        logger.info("Dual recognizer worker started")

    def stop(self) -> bool:
        """Request exit and wait up to ``join_timeout``. Returns True if the thread exited."""
        self._stop_event.set()

        with self._lock:
            thread = self._thread
            if thread is None:
                return True

            thread.join(timeout=self.join_timeout)
            if thread.is_alive():
                # Recognizers stay with the stuck thread until it exits.
                logger.warning("Speech processing thread did not terminate gracefully")
                return False

            self._thread = None

        logger.info(
            f"Dual recognizer worker stopped: {self.frames_processed} frames, "
            f"{self.utterances} utterances"
        )
        return True

    def close(self):
        """Stop the worker and dispose of recognizers it no longer uses."""
        if self.stop():
            self._dispose_recognizers()

    def _create_recognizers(self):
        for slot, profile in self.profiles.items():
            self._recognizers[slot] = self.factory.create(profile)
        self.recognizer_generation += 1

    def _dispose_recognizers(self):
        for slot in self._recognizers:
            recognizer = self._recognizers[slot]
            self._recognizers[slot] = None
            if recognizer is not None:
                self.factory.dispose(recognizer)

    def _replace_recognizers(self):
        self._dispose_recognizers()
        self._create_recognizers()

    def _ensure_recognizers(self):
        if any(recognizer is None for recognizer in self._recognizers.values()):
            self._dispose_recognizers()
            self._create_recognizers()
            logger.debug("Recognizers created")

    def process_frame(self, frame: np.ndarray) -> bool:
        """Feed one frame to both recognizers. Returns True if an utterance closed."""
        complete_a, raw_a = self._recognizers[EngineSlot.A].feed(frame)
        complete_b, raw_b = self._recognizers[EngineSlot.B].feed(frame)
        self.frames_processed += 1

        if not (complete_a or complete_b):
            return False

        result = self.arbiter.arbitrate(
            raw_a if complete_a else "",
            raw_b if complete_b else "",
        )
        self.result_queue.push(result)
        self.utterances += 1

        # Fresh recognizers so the next utterance starts without prior state.
        self._replace_recognizers()
        return True

    def _run(self):
        logger.info("Started dual recognizer thread")

        try:
            self._ensure_recognizers()
        except Exception as e:
            logger.error(f"Failed to create recognizers: {e}")
            return

        while not self._stop_event.is_set():
            frame = self.frame_queue.try_pop()
            if frame is None:
                self._stop_event.wait(self.idle_wait)
                continue

            try:
                self.process_frame(frame)
            except Exception as e:
                logger.error(f"Error in dual recognizer loop: {e}")
                try:
                    self._replace_recognizers()
                except Exception as e:
                    logger.error(f"Failed to recreate recognizers: {e}")
                    break

        logger.info("Dual recognizer thread stopped")

    def get_stats(self) -> Dict:
        runtime = time.time() - self.start_time if self.start_time else 0
        return {
            "runtime_seconds": runtime,
            "frames_processed": self.frames_processed,
            "utterances": self.utterances,
            "pending_frames": len(self.frame_queue),
            "pending_results": len(self.result_queue),
        }
