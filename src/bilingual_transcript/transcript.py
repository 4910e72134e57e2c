"""
Session transcript accumulation.

Only the winning text of each utterance is appended, after passing through a
script-normalization transform (simplified to traditional Chinese by default).
"""

import logging
from typing import Callable, List, Optional

from zhconv import convert

from .arbiter import ArbitrationResult

logger = logging.getLogger(__name__)

TextTransform = Callable[[str], str]


def identity(text: str) -> str:
    return text


def simplified_to_traditional(text: str) -> str:
    return convert(text, "zh-hant")


def safe_transform(transform: Optional[TextTransform], text: str) -> str:
    """Apply ``transform``; on any failure return the input unchanged."""
    if transform is None:
        return text
    try:
        converted = transform(text)
    except Exception as e:
        logger.warning(f"Error converting text '{text}': {e}")
        return text
    if not isinstance(converted, str):
        logger.warning(f"Text transform returned {type(converted).__name__}, keeping original")
        return text
    return converted


class Transcript:
    """Append-only, single-space separated text for one recording session."""

    def __init__(self):
        self.segments: List[str] = []
        self._text = ""

    @property
    def text(self) -> str:
        return self._text

    def append(self, segment: str):
        if not segment:
            return
        if self._text and not self._text.endswith(" ") and not segment.startswith(" "):
            self._text += " "
        self._text += segment
        self.segments.append(segment)

    def clear(self):
        self.segments.clear()
        self._text = ""

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return self._text


class TranscriptAccumulator:
    """Consumer-side owner of the session transcript."""

    def __init__(self, transform: Optional[TextTransform] = simplified_to_traditional):
        self.transform = transform
        self.transcript = Transcript()
        self.current_result = ""

    def reset(self):
        self.transcript.clear()
        self.current_result = ""

    def add(self, result: ArbitrationResult) -> bool:
        """Append the winning text of ``result``. Returns False when there was none."""
        return self.add_text(result.best_text)

    def add_text(self, text: str) -> bool:
        if not text:
            return False

        converted = safe_transform(self.transform, text)
        if not converted:
            return False
        if converted != text:
            logger.debug(f"Converted text: '{text}' -> '{converted}'")

        self.transcript.append(converted)
        self.current_result = self.transcript.text
        logger.debug(f"Accumulated text: {self.current_result}")
        return True
