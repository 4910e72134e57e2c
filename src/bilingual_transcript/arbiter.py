"""
Confidence arbitration between the two recognizers.

For each completed utterance both payloads are scored: the engine's raw
confidence is normalized into [0, 1], then adjusted by how well the
recognized text's script matches the script the engine is tuned for.
The higher adjusted score wins.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional

from . import config
from .engine import EngineProfile, EngineSlot
from .engine_output import RawEngineOutput, parse_engine_output
from .language import Script, count_scripts, detect_script

logger = logging.getLogger(__name__)


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def normalize_confidence(
    raw_confidence: Optional[float],
    text: str,
    scale: float = config.CONFIDENCE_SCALE,
) -> float:
    """Map an engine confidence into [0, 1].

    Without usable text the score is 0. Without a usable confidence a
    conservative length heuristic is used instead.
    """
    if not text or not text.strip():
        return 0.0

    if raw_confidence is None or not math.isfinite(raw_confidence):
        raw_confidence = 0.0
    normalized = _clamp01(raw_confidence / scale)
    if normalized == 0.0:
        length_score = min(len(text) / config.LENGTH_FALLBACK_CHARS, 1.0)
        normalized = length_score * config.LENGTH_FALLBACK_WEIGHT
    return normalized


def adjustment_factor(text: str, script: Script) -> float:
    """Multiplier applied to an engine's confidence given the text it produced."""
    counts = count_scripts(text)
    ideographic = counts.ideographic_ratio
    latin = counts.latin_ratio

    if ideographic > config.IDEOGRAPHIC_DETECTION_RATIO:
        if script is Script.IDEOGRAPHIC:
            return 1.0 + ideographic
        return 0.1 + (1.0 - ideographic) * 0.2

    if latin > config.LATIN_DETECTION_RATIO:
        if script is Script.LATIN:
            return 1.0 + latin * 0.5
        return 0.1 + (1.0 - latin) * 0.3

    if ideographic > config.MIXED_CONTENT_RATIO and latin > config.MIXED_CONTENT_RATIO:
        if script is Script.IDEOGRAPHIC and ideographic > latin:
            return 1.1
        if script is Script.LATIN and latin > ideographic:
            return 1.1
        return 0.9

    # digits, punctuation or letters from neither script
    return 0.9


def adjust_confidence(confidence: float, text: str, script: Script) -> float:
    return _clamp01(confidence * adjustment_factor(text, script))


@dataclass(frozen=True)
class ArbitrationResult:
    """Outcome of comparing both engines for one utterance."""

    raw_a: str
    raw_b: str
    text_a: str
    text_b: str
    confidence_a: float
    confidence_b: float
    winner: EngineSlot
    best_text: str

    def text_for(self, slot: EngineSlot) -> str:
        return self.text_a if slot is EngineSlot.A else self.text_b

    def confidence_for(self, slot: EngineSlot) -> float:
        return self.confidence_a if slot is EngineSlot.A else self.confidence_b


class ConfidenceArbiter:
    """Scores both engines' outputs and picks a winner per utterance."""

    def __init__(
        self,
        profiles: Dict[EngineSlot, EngineProfile],
        scale: float = config.CONFIDENCE_SCALE,
    ):
        self.profiles = profiles
        self.scale = scale

    def score(self, output: RawEngineOutput, profile: EngineProfile) -> float:
        text = output.best_text
        normalized = normalize_confidence(output.best_confidence, text, self.scale)
        adjusted = adjust_confidence(normalized, text, profile.script)
        if text:
            logger.debug(
                f"{profile.name} model - Raw confidence: {output.best_confidence}, "
                f"Normalized: {normalized:.3f}, Adjusted: {adjusted:.3f}, Text: '{text}'"
            )
        return adjusted

    def _latin_slot(self) -> EngineSlot:
        for slot, profile in self.profiles.items():
            if profile.script is Script.LATIN:
                return slot
        return EngineSlot.B

    def _break_tie(self, output_a: RawEngineOutput, output_b: RawEngineOutput) -> EngineSlot:
        # Both matching their own script resolves to A.
        if detect_script(output_a.best_text) is self.profiles[EngineSlot.A].script:
            return EngineSlot.A
        if detect_script(output_b.best_text) is self.profiles[EngineSlot.B].script:
            return EngineSlot.B
        return self._latin_slot()

    def arbitrate(self, raw_a: Optional[str], raw_b: Optional[str]) -> ArbitrationResult:
        output_a = parse_engine_output(raw_a)
        output_b = parse_engine_output(raw_b)

        confidence_a = self.score(output_a, self.profiles[EngineSlot.A])
        confidence_b = self.score(output_b, self.profiles[EngineSlot.B])

        if confidence_a > confidence_b:
            winner = EngineSlot.A
        elif confidence_b > confidence_a:
            winner = EngineSlot.B
        else:
            winner = self._break_tie(output_a, output_b)

        best = output_a if winner is EngineSlot.A else output_b
        result = ArbitrationResult(
            raw_a=raw_a or "",
            raw_b=raw_b or "",
            text_a=output_a.best_text,
            text_b=output_b.best_text,
            confidence_a=confidence_a,
            confidence_b=confidence_b,
            winner=winner,
            best_text=best.best_text,
        )

        logger.debug(
            f"Model comparison - A: {confidence_a:.3f}, B: {confidence_b:.3f}, "
            f"Winner: {winner.value}"
        )
        return result
