"""
Tests for the hysteresis language switch.
"""

from unittest.mock import MagicMock

import pytest

from bilingual_transcript.engine import EngineSlot
from bilingual_transcript.language_switch import (
    ActiveLanguage,
    LanguageMode,
    LanguageSwitcher,
    LanguageSwitchState,
    detect_language,
    force_language,
    transition,
)

A = EngineSlot.A
B = EngineSlot.B


def run(detections, state=None):
    state = state or LanguageSwitchState()
    switches = []
    for detected in detections:
        state, switched = transition(state, detected)
        switches.append(switched)
    return state, switches


class TestDetectLanguage:
    """Test cases for per-utterance detection."""

    def test_chinese(self):
        assert detect_language("你好") is A

    def test_english(self):
        assert detect_language("good morning") is B

    @pytest.mark.parametrize("text", ["", "42", "..."])
    def test_unclassifiable(self, text):
        assert detect_language(text) is None


class TestTransition:
    """Test cases for the pure transition function."""

    def test_initial_state(self):
        state = LanguageSwitchState()

        assert state.active is ActiveLanguage.UNSET
        assert state.consecutive_a == 0
        assert state.consecutive_b == 0

    def test_switches_on_third_detection(self):
        """Three consistent detections switch, two do not."""
        state, switches = run([A, A])
        assert state.active is ActiveLanguage.UNSET
        assert switches == [None, None]

        state, switched = transition(state, A)
        assert state.active is ActiveLanguage.A
        assert switched is ActiveLanguage.A

    def test_interleaved_detection_resets(self):
        state, switches = run([A, A, B])

        assert state.consecutive_a == 0
        assert state.consecutive_b == 1
        assert state.active is ActiveLanguage.UNSET
        assert switches == [None, None, None]

    def test_switch_back(self):
        state, switches = run([A, A, A, B, B, B])

        assert state.active is ActiveLanguage.B
        assert switches == [None, None, ActiveLanguage.A, None, None, ActiveLanguage.B]

    def test_no_repeat_notification(self):
        """Staying in the active language emits nothing further."""
        state, switches = run([B, B, B, B, B])

        assert state.active is ActiveLanguage.B
        assert state.consecutive_b == 5
        assert switches.count(ActiveLanguage.B) == 1

    def test_unclassifiable_is_ignored(self):
        state, _ = run([A, A])
        new_state, switched = transition(state, None)

        assert new_state == state
        assert switched is None

    def test_custom_threshold(self):
        state, switched = transition(LanguageSwitchState(), B, threshold=1)

        assert state.active is ActiveLanguage.B
        assert switched is ActiveLanguage.B

    def test_state_is_not_mutated(self):
        state = LanguageSwitchState()
        transition(state, A)

        assert state.consecutive_a == 0

    def test_force_language_resets_counters(self):
        state = force_language(ActiveLanguage.B)

        assert state == LanguageSwitchState(active=ActiveLanguage.B)


class TestLanguageSwitcher:
    """Test cases for the consumer-side switcher."""

    def test_notifies_listener_once(self):
        switcher = LanguageSwitcher()
        listener = MagicMock()
        switcher.add_listener(listener)

        for text in ["你好", "谢谢", "再见", "好的"]:
            switcher.observe(text)

        listener.assert_called_once_with(ActiveLanguage.A)
        assert switcher.active is ActiveLanguage.A

    def test_fixed_mode_ignores_detections(self):
        switcher = LanguageSwitcher()
        switcher.set_mode(LanguageMode.B)

        for text in ["你好", "谢谢", "再见"]:
            assert switcher.observe(text) is None

        assert switcher.active is ActiveLanguage.B
        assert switcher.state.consecutive_a == 0

    def test_manual_override_bypasses_hysteresis(self):
        switcher = LanguageSwitcher()
        listener = MagicMock()
        switcher.add_listener(listener)
        switcher.observe("hello")
        switcher.observe("hello again")

        switcher.force(ActiveLanguage.A)

        assert switcher.state == LanguageSwitchState(active=ActiveLanguage.A)
        listener.assert_called_once_with(ActiveLanguage.A)

    def test_auto_mode_resets(self):
        switcher = LanguageSwitcher()
        switcher.set_mode(LanguageMode.A)
        switcher.set_mode(LanguageMode.AUTO)

        assert switcher.state == LanguageSwitchState()

    def test_failing_listener_does_not_break_switch(self):
        switcher = LanguageSwitcher(threshold=1)
        switcher.add_listener(MagicMock(side_effect=RuntimeError("boom")))
        good = MagicMock()
        switcher.add_listener(good)

        switcher.observe("hello")

        good.assert_called_once_with(ActiveLanguage.B)
