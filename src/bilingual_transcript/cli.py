"""
Bilingual live transcription from the command line.

Runs a Chinese and an English recognizer over the same microphone audio and
keeps whichever wins each utterance.
"""

import argparse
import signal
import sys
import threading
import time
import logging
from typing import Optional, Sequence

from . import config
from .engine import VoskRecognizerFactory, default_profiles
from .frame_queue import FrameQueue, ResultQueue
from .language_switch import ActiveLanguage, LanguageMode
from .logger import ConsoleDisplay, setup_logging
from .session import RecordingSession
from .transcript import identity, simplified_to_traditional
from .worker import DualRecognizerEngine

logger = logging.getLogger(__name__)

LANGUAGE_MODES = {
    'auto': LanguageMode.AUTO,
    'zh': LanguageMode.A,
    'en': LanguageMode.B,
}


class BilingualTranscriber:
    """Wires microphone capture, the dual recognizer and console output together."""

    def __init__(
        self,
        zh_model: str = config.ZH_MODEL_PATH,
        en_model: str = config.EN_MODEL_PATH,
        mic_device: Optional[int] = None,
        duration: float = config.RECORDING_DURATION_SECONDS,
        language: str = 'auto',
        key_phrases: Sequence[str] = (),
        max_alternatives: int = config.MAX_ALTERNATIVES,
        convert: bool = True,
        show_confidence: bool = True,
        json_output: bool = False,
    ):
        self.zh_model = zh_model
        self.en_model = en_model
        self.mic_device = mic_device
        self.duration = duration
        self.language = language
        self.key_phrases = list(key_phrases)
        self.max_alternatives = max_alternatives
        self.convert = convert
        self.show_confidence = show_confidence
        self.json_output = json_output

        # Components
        self.session: Optional[RecordingSession] = None
        self.audio_capture = None
        self.display: Optional[ConsoleDisplay] = None

        # Control
        self.is_running = False
        self.shutdown_event = threading.Event()
        self.session_start = None

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        self.shutdown_event.set()

    def setup(self):
        """Build the pipeline components."""
        from .audio_capture import AudioCapture

        profiles = default_profiles(
            zh_model=self.zh_model,
            en_model=self.en_model,
            key_phrases=self.key_phrases,
            max_alternatives=self.max_alternatives,
        )
        engine = DualRecognizerEngine(
            profiles, VoskRecognizerFactory(), FrameQueue(), ResultQueue()
        )

        self.audio_capture = AudioCapture(device=self.mic_device)
        self.session = RecordingSession(
            engine,
            audio_source=self.audio_capture,
            transform=simplified_to_traditional if self.convert else identity,
        )
        self.audio_capture.set_callback(self.session.on_audio_frame)

        self.display = ConsoleDisplay(
            show_confidence=self.show_confidence,
            json_output=self.json_output,
        )
        self.session.on_status(self.display.show_status)
        self.session.on_result(self._result_callback)
        self.session.on_language_changed(self._language_callback)

    def _result_callback(self, result):
        self.display.add_result(result, self.session.transcript)

    def _language_callback(self, language: ActiveLanguage):
        logger.info(f"Language detected: {language.value}")

    def start(self):
        """Load models and begin recording."""
        if self.is_running:
            logger.warning("Transcriber already running")
            return

        if self.session is None:
            self.setup()

        self.session.load_models(background=False)
        if self.session.load_error:
            raise RuntimeError(self.session.load_error)

        self.session_start = time.time()
        self.display.reset(self.session_start)
        self.session.start(self.duration, LANGUAGE_MODES[self.language])
        self.is_running = True

    def run(self) -> str:
        """Consume results until the recording ends; return the final transcript."""
        if not self.is_running:
            logger.error("Transcriber not started")
            return ""

        try:
            while self.session.is_recording and not self.shutdown_event.is_set():
                self.session.poll()
                self.shutdown_event.wait(config.TIMER_TICK_SECONDS)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            summary = self.shutdown()

        return summary.final_transcript if summary else ""

    def shutdown(self):
        """Stop recording and release the recognizers."""
        if not self.is_running:
            return None

        self.is_running = False
        self.shutdown_event.set()

        self.session.poll_all()
        summary = self.session.stop()
        self.session.close()

        runtime = time.time() - self.session_start if self.session_start else 0
        logger.info(f"Session completed in {runtime:.1f}s, audio detected: {summary.detected_audio}")
        return summary

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()


def list_audio_devices():
    """Print available microphones."""
    from .audio_capture import AudioCapture

    print("Scanning audio devices...")
    devices = AudioCapture.list_audio_devices()

    print("\nMICROPHONE DEVICES (Input):")
    if not devices['input']:
        print("  No input devices found")
    for device in devices['input']:
        print(f"  [{device['id']:2d}] {device['name']}")
        print(f"       {device['channels']} channels, {device['sample_rate']:.0f} Hz")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bilingual (Chinese/English) live transcription",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List available microphones
  bilingual-transcript --list-devices

  # Record for 10 seconds with automatic language detection
  bilingual-transcript

  # Record for 30 seconds, keep simplified characters
  bilingual-transcript --duration 30 --no-convert

  # Restrict the vocabulary to a few phrases
  bilingual-transcript --key-phrase "turn on" --key-phrase "turn off"
        """
    )

    parser.add_argument('--list-devices', '-l', action='store_true',
                        help='List available microphones and exit')
    parser.add_argument('--mic-device', '-m', type=int,
                        help='Microphone device ID (use --list-devices to see options)')

    parser.add_argument('--zh-model', type=str, default=config.ZH_MODEL_PATH,
                        help=f'Chinese Vosk model directory (default: {config.ZH_MODEL_PATH})')
    parser.add_argument('--en-model', type=str, default=config.EN_MODEL_PATH,
                        help=f'English Vosk model directory (default: {config.EN_MODEL_PATH})')
    parser.add_argument('--max-alternatives', type=int, default=config.MAX_ALTERNATIVES,
                        help=f'Alternatives per utterance (default: {config.MAX_ALTERNATIVES})')
    parser.add_argument('--key-phrase', action='append', default=[], dest='key_phrases',
                        help='Restrict recognition to this phrase (repeatable)')

    parser.add_argument('--duration', '-d', type=float, default=config.RECORDING_DURATION_SECONDS,
                        help=f'Recording length in seconds (default: {config.RECORDING_DURATION_SECONDS:.0f})')
    parser.add_argument('--language', type=str, default='auto', choices=list(LANGUAGE_MODES),
                        help='Language mode: auto, zh or en (default: auto)')

    parser.add_argument('--no-convert', action='store_true',
                        help='Keep simplified Chinese instead of converting to traditional')
    parser.add_argument('--show-confidence', action=argparse.BooleanOptionalAction, default=True,
                        help='Show per-utterance confidence scores (default: on)')
    parser.add_argument('--json', action='store_true', dest='json_output',
                        help='Print one JSON object per utterance')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if args.list_devices:
        list_audio_devices()
        return 0

    try:
        with BilingualTranscriber(
            zh_model=args.zh_model,
            en_model=args.en_model,
            mic_device=args.mic_device,
            duration=args.duration,
            language=args.language,
            key_phrases=args.key_phrases,
            max_alternatives=args.max_alternatives,
            convert=not args.no_convert,
            show_confidence=args.show_confidence,
            json_output=args.json_output,
        ) as transcriber:
            transcript = transcriber.run()

        print("\n" + "=" * 60)
        print(transcript or "No speech detected - try speaking louder")
        print("=" * 60)
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Application failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
