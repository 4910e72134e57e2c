"""
Engine profiles and recognizer construction.

The recognizer itself is an opaque capability: it accepts PCM frames and,
once its endpoint detector closes an utterance, returns a JSON payload.
The Vosk-backed factory below is the production implementation.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Protocol, Sequence, Tuple

import numpy as np

from . import config
from .exceptions import EngineNotReadyError, ModelLoadError
from .language import Script

logger = logging.getLogger(__name__)


class EngineSlot(Enum):
    A = "A"
    B = "B"

    @property
    def other(self) -> "EngineSlot":
        return EngineSlot.B if self is EngineSlot.A else EngineSlot.A


def build_grammar(key_phrases: Sequence[str]) -> str:
    """JSON array of lower-cased phrases plus ``[unk]``; empty means unrestricted."""
    if not key_phrases:
        return ""
    keywords = [phrase.lower() for phrase in key_phrases]
    keywords.append("[unk]")
    return json.dumps(keywords, ensure_ascii=False)


@dataclass(frozen=True)
class EngineProfile:
    """Language-tuned recognizer configuration."""

    name: str
    script: Script
    model_path: str
    key_phrases: Tuple[str, ...] = field(default_factory=tuple)
    max_alternatives: int = config.MAX_ALTERNATIVES
    sample_rate: int = config.SAMPLE_RATE

    @property
    def grammar(self) -> str:
        return build_grammar(self.key_phrases)


def default_profiles(
    zh_model: str = config.ZH_MODEL_PATH,
    en_model: str = config.EN_MODEL_PATH,
    key_phrases: Sequence[str] = (),
    max_alternatives: int = config.MAX_ALTERNATIVES,
) -> Dict[EngineSlot, EngineProfile]:
    """Chinese on slot A, English on slot B."""
    phrases = tuple(key_phrases)
    return {
        EngineSlot.A: EngineProfile("chinese", Script.IDEOGRAPHIC, zh_model, phrases, max_alternatives),
        EngineSlot.B: EngineProfile("english", Script.LATIN, en_model, phrases, max_alternatives),
    }


class Recognizer(Protocol):
    def feed(self, frame: np.ndarray) -> Tuple[bool, str]:
        """Accept a frame; return (utterance complete, payload if complete)."""
        ...


class RecognizerFactory(Protocol):
    def load(self, profile: EngineProfile) -> None: ...

    def is_loaded(self, profile: EngineProfile) -> bool: ...

    def create(self, profile: EngineProfile) -> Recognizer: ...

    def dispose(self, recognizer: Recognizer) -> None: ...

    def close(self) -> None: ...


class VoskRecognizer:
    """Adapter exposing a KaldiRecognizer as a Recognizer."""

    def __init__(self, kaldi_recognizer, profile: EngineProfile):
        self._recognizer = kaldi_recognizer
        self.profile = profile

    def feed(self, frame: np.ndarray) -> Tuple[bool, str]:
        if self._recognizer is None:
            raise RuntimeError(f"Recognizer for {self.profile.name} was disposed")
        data = np.asarray(frame, dtype=np.int16).tobytes()
        if self._recognizer.AcceptWaveform(data):
            return True, self._recognizer.Result()
        return False, ""

    def close(self):
        self._recognizer = None


class VoskRecognizerFactory:
    """Loads one Vosk model per profile and builds recognizers from it."""

    def __init__(self, log_level: int = -1):
        self.log_level = log_level
        self._models: Dict[str, object] = {}
        self._lock = threading.Lock()

    def load(self, profile: EngineProfile) -> None:
        if self.is_loaded(profile):
            return

        if not os.path.isdir(profile.model_path):
            raise ModelLoadError(profile.name, f"model directory not found: {profile.model_path}")

        try:
            from vosk import Model, SetLogLevel
        except ImportError as e:
            raise ModelLoadError(profile.name, "vosk is not installed") from e

        SetLogLevel(self.log_level)
        logger.info(f"Loading {profile.name} model from: {profile.model_path}")
        try:
            model = Model(profile.model_path)
        except Exception as e:
            raise ModelLoadError(profile.name, str(e)) from e

        with self._lock:
            self._models[profile.name] = model
        logger.info(f"{profile.name} model loaded")

    def is_loaded(self, profile: EngineProfile) -> bool:
        with self._lock:
            return profile.name in self._models

    def create(self, profile: EngineProfile) -> VoskRecognizer:
        with self._lock:
            model = self._models.get(profile.name)
        if model is None:
            raise EngineNotReadyError(f"Model for '{profile.name}' is not loaded")

        from vosk import KaldiRecognizer

        grammar = profile.grammar
        if grammar:
            kaldi = KaldiRecognizer(model, float(profile.sample_rate), grammar)
        else:
            kaldi = KaldiRecognizer(model, float(profile.sample_rate))
        kaldi.SetMaxAlternatives(profile.max_alternatives)
        return VoskRecognizer(kaldi, profile)

    def dispose(self, recognizer: Optional[Recognizer]) -> None:
        if recognizer is not None and hasattr(recognizer, "close"):
            recognizer.close()

    def close(self):
        with self._lock:
            self._models.clear()
