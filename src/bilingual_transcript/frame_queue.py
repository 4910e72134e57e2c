"""
Thread-safe hand-off queues between capture, worker and consumer.

Both queues are unbounded FIFOs: push never blocks or drops, pops never block.
"""

import queue
from typing import Generic, Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


def make_frame(samples: Sequence[int]) -> np.ndarray:
    """Copy captured samples into a read-only int16 frame."""
    frame = np.array(samples, dtype=np.int16).reshape(-1)
    frame.flags.writeable = False
    return frame


class HandoffQueue(Generic[T]):
    """Unbounded single-producer/single-consumer FIFO with non-blocking pops."""

    def __init__(self):
        self._queue: "queue.Queue[T]" = queue.Queue()

    def push(self, item: T) -> None:
        self._queue.put_nowait(item)

    def try_pop(self) -> Optional[T]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def peek(self) -> Optional[T]:
        """Return the oldest item without removing it."""
        with self._queue.mutex:
            if self._queue.queue:
                return self._queue.queue[0]
            return None

    def clear(self) -> int:
        """Drop every pending item and return how many were dropped."""
        dropped = 0
        while self.try_pop() is not None:
            dropped += 1
        return dropped

    def __len__(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()


class FrameQueue(HandoffQueue[np.ndarray]):
    """Audio frames in capture order, written by the capture callback."""

    def push_samples(self, samples: Sequence[int]) -> None:
        self.push(make_frame(samples))


class ResultQueue(HandoffQueue["ArbitrationResult"]):
    """One arbitration outcome per completed utterance, in completion order."""
