"""
Hysteresis-based "current session language" signal.

The active language only changes after several consecutive utterances are
detected in the same language. This is advisory: arbitration already picks
the winning engine per utterance.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple

from . import config
from .engine import EngineSlot
from .language import Script, detect_script

logger = logging.getLogger(__name__)


class ActiveLanguage(Enum):
    UNSET = "unset"
    A = "A"
    B = "B"

    @classmethod
    def from_slot(cls, slot: EngineSlot) -> "ActiveLanguage":
        return cls.A if slot is EngineSlot.A else cls.B


class LanguageMode(Enum):
    AUTO = "auto"
    A = "A"
    B = "B"


@dataclass(frozen=True)
class LanguageSwitchState:
    active: ActiveLanguage = ActiveLanguage.UNSET
    consecutive_a: int = 0
    consecutive_b: int = 0


def detect_language(text: str) -> Optional[EngineSlot]:
    """A for mostly-ideographic text, B otherwise, None without letters."""
    script = detect_script(text)
    if script is None:
        return None
    return EngineSlot.A if script is Script.IDEOGRAPHIC else EngineSlot.B


def transition(
    state: LanguageSwitchState,
    detected: Optional[EngineSlot],
    threshold: int = config.LANGUAGE_SWITCH_THRESHOLD,
) -> Tuple[LanguageSwitchState, Optional[ActiveLanguage]]:
    """Apply one detection. Returns the new state and the language switched to, if any."""
    if detected is None:
        return state, None

    if detected is EngineSlot.A:
        state = replace(state, consecutive_a=state.consecutive_a + 1, consecutive_b=0)
        count = state.consecutive_a
    else:
        state = replace(state, consecutive_b=state.consecutive_b + 1, consecutive_a=0)
        count = state.consecutive_b

    target = ActiveLanguage.from_slot(detected)
    if count >= threshold and state.active is not target:
        return replace(state, active=target), target
    return state, None


def force_language(language: ActiveLanguage) -> LanguageSwitchState:
    """Manual override: set the active language and clear both counters."""
    return LanguageSwitchState(active=language)


class LanguageSwitcher:
    """Holds the switch state on the consumer side and notifies listeners."""

    def __init__(self, threshold: int = config.LANGUAGE_SWITCH_THRESHOLD):
        self.threshold = threshold
        self.mode = LanguageMode.AUTO
        self.state = LanguageSwitchState()
        self._listeners: List[Callable[[ActiveLanguage], None]] = []

    @property
    def active(self) -> ActiveLanguage:
        return self.state.active

    def add_listener(self, listener: Callable[[ActiveLanguage], None]):
        self._listeners.append(listener)

    def _notify(self, language: ActiveLanguage):
        logger.info(f"Switched active language to {language.value}")
        for listener in self._listeners:
            try:
                listener(language)
            except Exception as e:
                logger.error(f"Language listener failed: {e}")

    def set_mode(self, mode: LanguageMode):
        self.mode = mode
        if mode is LanguageMode.AUTO:
            self.state = LanguageSwitchState()
            return
        self.force(ActiveLanguage.A if mode is LanguageMode.A else ActiveLanguage.B)

    def force(self, language: ActiveLanguage):
        previous = self.state.active
        self.state = force_language(language)
        if language is not previous and language is not ActiveLanguage.UNSET:
            self._notify(language)

    def observe(self, text: str) -> Optional[ActiveLanguage]:
        """Feed one utterance's winning text; only acts in AUTO mode."""
        if self.mode is not LanguageMode.AUTO:
            return None
        self.state, switched = transition(self.state, detect_language(text), self.threshold)
        if switched is not None:
            self._notify(switched)
        return switched
