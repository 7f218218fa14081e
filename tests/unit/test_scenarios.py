"""Unit tests for the scenario catalogue and outbound messages."""

import json

import pytest

from pingo.config.scenarios import (
    SCENARIOS,
    build_session_instructions,
    format_instructions,
    scenario_context,
    voice_for,
)
from pingo.models.scenario import Language, Scenario, ScenarioSelection
from pingo.realtime import messages


@pytest.mark.unit
class TestScenarioCatalogue:
    """Prompt rendering for each practice mode."""

    def test_every_scenario_is_defined(self):
        assert set(SCENARIOS) == set(Scenario)

    @pytest.mark.parametrize("language, voice", [
        (None, "alloy"),
        (Language.ENGLISH, "alloy"),
        (Language.SPANISH, "echo"),
        (Language.MANDARIN, "shimmer"),
        (Language.ARABIC, "coral"),
    ])
    def test_voice_for(self, language, voice):
        assert voice_for(language) == voice

    def test_language_tutor_includes_vocabulary(self):
        text = format_instructions(Scenario.LANGUAGE_TUTOR, Language.SPANISH)
        assert 'can you say "¡Hola!" back to me?' in text
        assert "BASIC WORDS: Hola, Adiós" in text
        assert "LANGUAGETUTOR FLOW:" in text

    def test_interview_in_other_language(self):
        text = format_instructions(Scenario.JOB_INTERVIEW, Language.MANDARIN)
        assert "Please conduct this interview in Mandarin (中文)." in text
        assert "(Please respond in Mandarin)" in text

    def test_rules_are_bulleted(self):
        text = format_instructions(Scenario.FOUNDER_MOCK)
        assert "RULES:\n- ALWAYS begin with a simple greeting" in text
        assert "LANGUAGE:" not in text

    def test_session_instructions_header(self):
        text = build_session_instructions(ScenarioSelection(Scenario.FOUNDER_MOCK, Language.ARABIC))
        assert text.startswith("CRITICAL: You must speak EXCLUSIVELY in Arabic.")
        assert "You are conducting a founderMock." in text

    @pytest.mark.parametrize("scenario, context", [
        (Scenario.JOB_INTERVIEW, "job interview practice session"),
        (Scenario.LANGUAGE_TUTOR, "language learning session"),
        (Scenario.FOUNDER_MOCK, "startup pitch practice session"),
    ])
    def test_scenario_context(self, scenario, context):
        assert scenario_context(scenario) == context


@pytest.mark.unit
class TestMessages:
    """Outbound side-channel message shapes."""

    def test_session_update(self):
        message = messages.session_update("Be nice", "echo", 0.6)
        assert message == {
            "type": "session.update",
            "session": {
                "instructions": "Be nice",
                "voice": "echo",
                "temperature": 0.6,
                "turn_detection": None,
                "input_audio_format": "pcm16",
                "input_audio_transcription": {"model": "whisper-1"},
            },
        }

    def test_truncate_has_null_item(self):
        encoded = messages.encode(messages.conversation_item_truncate())
        assert json.loads(encoded) == {"type": "conversation.item.truncate", "item_id": None}

    def test_user_text_item(self):
        item = messages.user_text_item("Hola")["item"]
        assert item == {
            "type": "message",
            "role": "user",
            "content": [{"type": "input_text", "text": "Hola"}],
        }
