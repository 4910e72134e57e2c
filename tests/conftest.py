"""
Pytest configuration and fixtures for bilingual transcript tests.
"""

import json
import os
import sys
import time

import numpy as np
import pytest

# Add src to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bilingual_transcript.engine import default_profiles
from bilingual_transcript.exceptions import ModelLoadError
from bilingual_transcript.frame_queue import FrameQueue, ResultQueue
from bilingual_transcript.worker import DualRecognizerEngine


def payload(text, confidence=None, alternatives=None):
    """Build a recognizer JSON payload."""
    data = {}
    if alternatives is not None:
        data["alternatives"] = [{"text": t, "confidence": c} for t, c in alternatives]
    else:
        data["text"] = text
        if confidence is not None:
            data["confidence"] = confidence
    return json.dumps(data, ensure_ascii=False)


def wait_for(predicate, timeout=2.0, interval=0.01):
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class FakeRecognizer:
    """Completes an utterance after ``complete_after`` frames (0 = never)."""

    def __init__(self, profile, complete_after, payloads, block=None):
        self.profile = profile
        self.complete_after = complete_after
        self.payloads = payloads
        self.block = block
        self.frames = []
        self.disposed = False

    def feed(self, frame):
        if self.block is not None:
            self.block.wait()
        if self.disposed:
            raise RuntimeError("fed a disposed recognizer")
        self.frames.append(frame)
        if self.complete_after and len(self.frames) >= self.complete_after:
            return True, next(self.payloads, "")
        return False, ""


class FakeRecognizerFactory:
    """In-memory stand-in for the Vosk factory."""

    def __init__(self, scripts=None, loaded=True, fail=(), block=None):
        # scripts: profile name -> (complete_after, [payloads])
        self.scripts = scripts or {}
        self.payloads = {name: iter(items) for name, (_, items) in self.scripts.items()}
        self.loaded = set()
        self.fail = set(fail)
        self.block = block
        self.created = []
        self.disposed = []
        self.closed = False
        self._autoload = loaded

    def load(self, profile):
        if profile.name in self.fail:
            raise ModelLoadError(profile.name, "model directory not found")
        self.loaded.add(profile.name)

    def is_loaded(self, profile):
        return self._autoload or profile.name in self.loaded

    def create(self, profile):
        complete_after, _ = self.scripts.get(profile.name, (0, []))
        recognizer = FakeRecognizer(
            profile, complete_after, self.payloads.setdefault(profile.name, iter(())), self.block
        )
        self.created.append(recognizer)
        return recognizer

    def dispose(self, recognizer):
        recognizer.disposed = True
        self.disposed.append(recognizer)

    def close(self):
        self.closed = True


@pytest.fixture
def profiles():
    return default_profiles(zh_model="models/zh", en_model="models/en")


@pytest.fixture
def make_engine(profiles):
    """Factory for DualRecognizerEngine instances backed by fake recognizers."""
    engines = []

    def _make(scripts=None, loaded=True, fail=(), block=None, **kwargs):
        factory = FakeRecognizerFactory(scripts, loaded=loaded, fail=fail, block=block)
        kwargs.setdefault("idle_wait", 0.01)
        engine = DualRecognizerEngine(profiles, factory, FrameQueue(), ResultQueue(), **kwargs)
        engines.append(engine)
        return engine

    yield _make

    for engine in engines:
        if engine.factory.block is not None:
            engine.factory.block.set()
        engine.stop()


@pytest.fixture
def sample_frame():
    """One 512-sample frame of a 440 Hz tone at moderate volume."""
    sample_rate = 16000
    t = np.arange(512) / sample_rate
    return (np.sin(2 * np.pi * 440 * t) * 8000).astype(np.int16)


@pytest.fixture
def silent_frame():
    return np.zeros(512, dtype=np.int16)
