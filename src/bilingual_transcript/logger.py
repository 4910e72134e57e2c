"""
Console presentation of arbitration results and the running transcript.
"""

import json
import logging
import sys
import threading
import time
from typing import Dict, List, Optional, TextIO

from .arbiter import ArbitrationResult

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure the root logger for the command-line application."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


class ResultEntry:
    """One arbitrated utterance, timestamped relative to the session start."""

    def __init__(self, timestamp: float, result: ArbitrationResult, session_start: Optional[float] = None):
        self.timestamp = timestamp
        self.result = result
        self.session_start = session_start or time.time()
        self.relative_time = max(0, timestamp - self.session_start)

    def to_dict(self) -> Dict:
        return {
            "time": self.format_time(self.relative_time),
            "timestamp": self.timestamp,
            "winner": self.result.winner.value,
            "confidence_a": round(self.result.confidence_a, 3),
            "confidence_b": round(self.result.confidence_b, 3),
            "text_a": self.result.text_a,
            "text_b": self.result.text_b,
            "text": self.result.best_text
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def confidence_info(self) -> str:
        return (f"CN:{self.result.confidence_a:.2f} EN:{self.result.confidence_b:.2f} "
                f"[{self.result.winner.value}]")

    @staticmethod
    def format_time(seconds: float) -> str:
        """Format time in HH:MM:SS.ms format."""
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        seconds = seconds % 60
        return f"{hours:02d}:{minutes:02d}:{seconds:06.3f}"

    def __str__(self) -> str:
        time_str = self.format_time(self.relative_time)
        return f"[{time_str}] {self.confidence_info()} {self.result.best_text}"


class ConsoleDisplay:
    """Prints each utterance and the accumulated transcript as they arrive."""

    def __init__(
        self,
        session_start: Optional[float] = None,
        show_confidence: bool = True,
        json_output: bool = False,
        stream: Optional[TextIO] = None
    ):
        self.session_start = session_start or time.time()
        self.show_confidence = show_confidence
        self.json_output = json_output
        self.stream = stream or sys.stdout
        self.lines: List[str] = []
        self.last_status = ""
        self.lock = threading.Lock()

    def reset(self, session_start: Optional[float] = None):
        with self.lock:
            self.session_start = session_start or time.time()
            self.lines.clear()

    def add_result(self, result: ArbitrationResult, transcript: str = "", timestamp: Optional[float] = None):
        entry = ResultEntry(timestamp or time.time(), result, self.session_start)

        with self.lock:
            if self.json_output:
                line = entry.to_json()
            elif self.show_confidence:
                line = f"{entry.confidence_info()}\n{transcript or 'Listening...'}"
            else:
                line = transcript or "Listening..."

            self.lines.append(line)
            print(line, file=self.stream, flush=True)

    def show_status(self, status: str):
        with self.lock:
            if self.json_output or status == self.last_status:
                return
            self.last_status = status
            print(status, file=self.stream, flush=True)
