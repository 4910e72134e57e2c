"""
Bilingual Live Transcription

Runs a Chinese and an English speech recognizer concurrently over the same
microphone audio, arbitrates between them per utterance and accumulates the
winning text into a session transcript.
"""

__version__ = "1.0.0"
__description__ = "Dual-engine Chinese/English live transcription with per-utterance arbitration"

from .arbiter import ArbitrationResult, ConfidenceArbiter
from .engine import EngineProfile, EngineSlot, VoskRecognizerFactory, default_profiles
from .frame_queue import FrameQueue, ResultQueue
from .language_switch import ActiveLanguage, LanguageMode, LanguageSwitcher
from .session import RecordingSession, StopSummary
from .transcript import TranscriptAccumulator
from .worker import DualRecognizerEngine

__all__ = [
    "ArbitrationResult",
    "ConfidenceArbiter",
    "EngineProfile",
    "EngineSlot",
    "VoskRecognizerFactory",
    "default_profiles",
    "FrameQueue",
    "ResultQueue",
    "ActiveLanguage",
    "LanguageMode",
    "LanguageSwitcher",
    "RecordingSession",
    "StopSummary",
    "TranscriptAccumulator",
    "DualRecognizerEngine",
]
