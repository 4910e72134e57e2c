"""
Microphone capture for the bilingual transcriber.
Delivers fixed-size mono int16 frames at 16 kHz to a callback.
"""

import sounddevice as sd
import numpy as np
import threading
from typing import Optional, Callable, Dict, List
import logging

from . import config

logger = logging.getLogger(__name__)


class AudioCapture:
    """Single microphone stream with error counting and recovery."""

    def __init__(
        self,
        sample_rate: int = config.SAMPLE_RATE,
        frame_size: int = config.FRAME_SIZE,
        device: Optional[int] = None,
    ):
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.device = device

        self.stream = None
        self.is_running = False
        self.stop_event = threading.Event()

        self.frame_callback: Optional[Callable[[np.ndarray], None]] = None

        # Error tracking
        self.errors = 0
        self.max_errors = 5
        self.frames_captured = 0

    @staticmethod
    def list_audio_devices() -> Dict[str, List[Dict]]:
        """List available input devices."""
        try:
            devices = sd.query_devices()
            input_devices = []

            for i, device in enumerate(devices):
                if device['max_input_channels'] > 0:
                    input_devices.append({
                        'id': i,
                        'name': device['name'],
                        'channels': device['max_input_channels'],
                        'sample_rate': device['default_samplerate']
                    })

            return {'input': input_devices}
        except Exception as e:
            logger.error(f"Failed to list audio devices: {e}")
            return {'input': []}

    def set_callback(self, frame_callback: Callable[[np.ndarray], None]):
        self.frame_callback = frame_callback

    def _callback(self, indata, frames, time_info, status):
        """sounddevice callback, runs on the PortAudio thread."""
        try:
            if status:
                logger.warning(f"Mic audio status: {status}")

            if len(indata.shape) > 1:
                samples = indata[:, 0]
            else:
                samples = indata

            if self.frame_callback and self.is_running:
                self.frame_callback(samples.astype(np.int16, copy=True))
                self.frames_captured += 1

        except Exception as e:
            self.errors += 1
            logger.error(f"Mic callback error ({self.errors}/{self.max_errors}): {e}")
            if self.errors >= self.max_errors:
                logger.error("Too many mic errors, stopping mic stream")
                if self.stream:
                    self.stream.stop()

    def start(self):
        """Start capturing."""
        if self.is_running:
            logger.warning("Audio capture already running")
            return

        self.is_running = True
        self.stop_event.clear()
        self.errors = 0

        try:
            self.stream = sd.InputStream(
                device=self.device,
                channels=1,
                samplerate=self.sample_rate,
                blocksize=self.frame_size,
                callback=self._callback,
                dtype='int16'
            )
            self.stream.start()
            logger.info(f"Audio capture started (device: {self.device}, "
                        f"{self.sample_rate} Hz, {self.frame_size} samples/frame)")
        except Exception as e:
            logger.error(f"Failed to start audio capture: {e}")
            self.stop()
            raise

    def stop(self):
        """Stop capturing."""
        if not self.is_running:
            return

        self.is_running = False
        self.stop_event.set()

        if self.stream:
            try:
                self.stream.stop()
                self.stream.close()
            except Exception as e:
                logger.error(f"Error stopping mic stream: {e}")
            finally:
                self.stream = None

        logger.info("Audio capture stopped")

    def is_healthy(self) -> Dict[str, bool]:
        return {
            'mic': self.stream is not None and self.errors < self.max_errors,
            'running': self.is_running
        }

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
