"""
Parsing of recognizer result payloads.

A recognizer emits a JSON object such as::

    {"text": "hello world", "confidence": 312.5}

or, when alternatives are enabled::

    {"alternatives": [{"text": "hello world", "confidence": 312.5}, ...]}

Everything downstream works with the typed RawEngineOutput produced here.
"""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Alternative:
    text: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class RawEngineOutput:
    """One engine's result for one completed utterance."""

    raw: str = ""
    text: str = ""
    confidence: Optional[float] = None
    alternatives: Tuple[Alternative, ...] = field(default_factory=tuple)
    parse_failed: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.best_text.strip()

    @property
    def best_text(self) -> str:
        """Text of the top alternative, falling back to the top-level text."""
        if self.alternatives and self.alternatives[0].text:
            return self.alternatives[0].text
        return self.text

    @property
    def best_confidence(self) -> float:
        """Confidence of the top alternative, falling back to the top-level value."""
        confidence = 0.0
        if self.alternatives and self.alternatives[0].confidence is not None:
            confidence = self.alternatives[0].confidence
        if confidence == 0.0 and self.confidence is not None:
            confidence = self.confidence
        return confidence


EMPTY_OUTPUT = RawEngineOutput()


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        try:
            number = float(value)
        except (ValueError, OverflowError):
            return None
        # json accepts NaN and Infinity literals
        return number if math.isfinite(number) else None
    return None


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _parse_alternatives(value: Any) -> Tuple[Alternative, ...]:
    if not isinstance(value, list):
        return ()
    alternatives: List[Alternative] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        alternatives.append(Alternative(
            text=_as_text(item.get("text")),
            confidence=_as_float(item.get("confidence")),
        ))
    return tuple(alternatives)


def parse_engine_output(raw: Optional[str]) -> RawEngineOutput:
    """Parse a recognizer payload; never raises.

    Empty input yields an empty output. Malformed input yields an empty
    output flagged with ``parse_failed`` so callers can log it.
    """
    if raw is None or not raw.strip():
        return EMPTY_OUTPUT

    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Unparseable engine payload ({e}): {raw[:80]!r}")
        return RawEngineOutput(raw=raw, parse_failed=True)

    if not isinstance(payload, dict):
        logger.warning(f"Engine payload is not an object: {raw[:80]!r}")
        return RawEngineOutput(raw=raw, parse_failed=True)

    return RawEngineOutput(
        raw=raw,
        text=_as_text(payload.get("text")),
        confidence=_as_float(payload.get("confidence")),
        alternatives=_parse_alternatives(payload.get("alternatives")),
    )
