"""
Tests for engine profiles and the Vosk recognizer adapter.
"""

import json
from unittest.mock import MagicMock

import numpy as np
import pytest

from bilingual_transcript import config
from bilingual_transcript.engine import (
    EngineProfile,
    EngineSlot,
    VoskRecognizer,
    VoskRecognizerFactory,
    build_grammar,
    default_profiles,
)
from bilingual_transcript.exceptions import EngineNotReadyError, ModelLoadError
from bilingual_transcript.language import Script


class TestGrammar:
    """Test cases for key-phrase grammar construction."""

    def test_empty_means_unrestricted(self):
        assert build_grammar([]) == ""

    def test_lowercased_with_unknown(self):
        grammar = build_grammar(["Turn On", "打开"])

        assert json.loads(grammar) == ["turn on", "打开", "[unk]"]

    def test_profile_grammar(self):
        profile = EngineProfile("english", Script.LATIN, "models/en", key_phrases=("Hello",))
        assert json.loads(profile.grammar) == ["hello", "[unk]"]


class TestProfiles:
    """Test cases for the default profile pair."""

    def test_default_profiles(self):
        profiles = default_profiles()

        assert profiles[EngineSlot.A].script is Script.IDEOGRAPHIC
        assert profiles[EngineSlot.B].script is Script.LATIN
        assert profiles[EngineSlot.A].model_path == config.ZH_MODEL_PATH
        assert profiles[EngineSlot.B].model_path == config.EN_MODEL_PATH
        assert profiles[EngineSlot.A].sample_rate == 16000
        assert profiles[EngineSlot.A].max_alternatives == config.MAX_ALTERNATIVES

    def test_shared_settings(self):
        profiles = default_profiles(key_phrases=["yes", "no"], max_alternatives=5)

        for profile in profiles.values():
            assert profile.key_phrases == ("yes", "no")
            assert profile.max_alternatives == 5

    def test_profiles_are_immutable(self):
        profile = default_profiles()[EngineSlot.A]

        with pytest.raises(AttributeError):
            profile.model_path = "elsewhere"

    def test_slot_other(self):
        assert EngineSlot.A.other is EngineSlot.B
        assert EngineSlot.B.other is EngineSlot.A


class TestVoskRecognizer:
    """Test cases for the KaldiRecognizer adapter."""

    def test_incomplete_frame(self, profiles):
        kaldi = MagicMock()
        kaldi.AcceptWaveform.return_value = False
        recognizer = VoskRecognizer(kaldi, profiles[EngineSlot.B])

        assert recognizer.feed(np.zeros(512, dtype=np.int16)) == (False, "")
        kaldi.Result.assert_not_called()

    def test_complete_frame(self, profiles):
        kaldi = MagicMock()
        kaldi.AcceptWaveform.return_value = True
        kaldi.Result.return_value = '{"text": "hello"}'
        recognizer = VoskRecognizer(kaldi, profiles[EngineSlot.B])

        frame = np.arange(4, dtype=np.int16)
        assert recognizer.feed(frame) == (True, '{"text": "hello"}')
        kaldi.AcceptWaveform.assert_called_once_with(frame.tobytes())

    def test_disposed_recognizer_rejects_frames(self, profiles):
        recognizer = VoskRecognizer(MagicMock(), profiles[EngineSlot.A])
        recognizer.close()

        with pytest.raises(RuntimeError):
            recognizer.feed(np.zeros(4, dtype=np.int16))


class TestVoskRecognizerFactory:
    """Test cases for model loading guards."""

    def test_missing_model_directory(self, tmp_path):
        factory = VoskRecognizerFactory()
        profile = EngineProfile("chinese", Script.IDEOGRAPHIC, str(tmp_path / "missing"))

        with pytest.raises(ModelLoadError) as excinfo:
            factory.load(profile)

        assert excinfo.value.profile_name == "chinese"
        assert not factory.is_loaded(profile)

    def test_create_before_load(self, profiles):
        factory = VoskRecognizerFactory()

        with pytest.raises(EngineNotReadyError):
            factory.create(profiles[EngineSlot.A])

    def test_dispose_closes_recognizer(self, profiles):
        factory = VoskRecognizerFactory()
        recognizer = VoskRecognizer(MagicMock(), profiles[EngineSlot.A])

        factory.dispose(recognizer)

        with pytest.raises(RuntimeError):
            recognizer.feed(np.zeros(4, dtype=np.int16))
