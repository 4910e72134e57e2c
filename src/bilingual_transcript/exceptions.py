"""Exceptions that propagate out of the transcription pipeline."""


class TranscriptError(Exception):
    """Base class for bilingual transcript errors."""


class ModelLoadError(TranscriptError):
    """A recognition model could not be loaded for an engine profile."""

    def __init__(self, profile_name: str, reason: str):
        super().__init__(f"Failed to load model for '{profile_name}': {reason}")
        self.profile_name = profile_name
        self.reason = reason


class EngineNotReadyError(TranscriptError):
    """The worker was started before both models finished loading."""
