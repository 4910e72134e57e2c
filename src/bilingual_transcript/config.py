"""
Tunable settings for the bilingual transcription pipeline.
Constructor keyword arguments override these per instance.
"""

# --- Audio ---
SAMPLE_RATE = 16000
FRAME_SIZE = 512  # samples per captured frame

# --- Worker ---
IDLE_WAIT_SECONDS = 0.1      # sleep when the frame queue is empty
JOIN_TIMEOUT_SECONDS = 1.0   # how long stop() waits for the worker thread

# --- Confidence scoring ---
# Vosk confidences are usually in the hundreds
CONFIDENCE_SCALE = 1000.0
LENGTH_FALLBACK_CHARS = 20
LENGTH_FALLBACK_WEIGHT = 0.5

# --- Language detection / switching ---
IDEOGRAPHIC_DETECTION_RATIO = 0.3
LATIN_DETECTION_RATIO = 0.8
MIXED_CONTENT_RATIO = 0.1
LANGUAGE_SWITCH_THRESHOLD = 3  # consecutive detections needed

# --- Session ---
READINESS_POLL_SECONDS = 1.0
RECORDING_DURATION_SECONDS = 10.0
TIMER_TICK_SECONDS = 0.1
AUDIO_LEVEL_THRESHOLD = 0.01  # mean absolute level counted as speech

# --- Models ---
MAX_ALTERNATIVES = 3
ZH_MODEL_PATH = "models/vosk-model-small-cn-0.22"
EN_MODEL_PATH = "models/vosk-model-small-en-us-0.15"
