"""
Character-script classification used for confidence adjustment and
language detection.
"""

from enum import Enum
from typing import NamedTuple, Optional

from . import config

# CJK Unified Ideographs, Extension A, Compatibility Ideographs
IDEOGRAPHIC_RANGES = (
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0xF900, 0xFAFF),
)


class Script(Enum):
    IDEOGRAPHIC = "ideographic"
    LATIN = "latin"


def is_ideographic(ch: str) -> bool:
    code = ord(ch)
    return any(low <= code <= high for low, high in IDEOGRAPHIC_RANGES)


def is_latin_letter(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


class ScriptCounts(NamedTuple):
    """Letter counts of a text by script. Digits and punctuation are ignored."""

    ideographic: int = 0
    latin: int = 0
    other: int = 0

    @property
    def letters(self) -> int:
        return self.ideographic + self.latin + self.other

    @property
    def classified(self) -> int:
        """Letters from either recognized script; ratios are taken over these."""
        return self.ideographic + self.latin

    @property
    def ideographic_ratio(self) -> float:
        return self.ideographic / self.classified if self.classified else 0.0

    @property
    def latin_ratio(self) -> float:
        return self.latin / self.classified if self.classified else 0.0


def count_scripts(text: str) -> ScriptCounts:
    ideographic = latin = other = 0
    for ch in text or "":
        if is_ideographic(ch):
            ideographic += 1
        elif is_latin_letter(ch):
            latin += 1
        elif ch.isalpha():
            other += 1
    return ScriptCounts(ideographic, latin, other)


def detect_script(text: str, threshold: float = config.IDEOGRAPHIC_DETECTION_RATIO) -> Optional[Script]:
    """Classify text as ideographic or Latin; None without letters of either script."""
    counts = count_scripts(text)
    if counts.classified == 0:
        return None
    if counts.ideographic_ratio > threshold:
        return Script.IDEOGRAPHIC
    return Script.LATIN
