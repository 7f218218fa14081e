"""Unit tests for the transcript model and HTTP body schemas."""

import pytest
from pydantic import ValidationError

from pingo.models.transcript import Speaker, Transcript, Utterance
from pingo.models.wire import SummaryRequest, TranscriptProcessRequest, UtteranceList


@pytest.mark.unit
class TestTranscript:
    """Test cases for Transcript."""

    def test_fragments_merge_into_one_entry(self):
        transcript = Transcript()
        assert transcript.append_assistant_fragment("Good ") is True
        assert transcript.append_assistant_fragment("morning") is True

        assert len(transcript) == 1
        assert transcript.last.speaker == Speaker.ASSISTANT
        assert transcript.last.text == "Good morning"

    def test_empty_fragment_is_ignored(self):
        transcript = Transcript()
        assert transcript.append_assistant_fragment("") is False
        assert len(transcript) == 0

    def test_user_turn_splits_assistant_entries(self):
        transcript = Transcript()
        transcript.append_assistant_fragment("Hi")
        transcript.add_user_text("Hello")
        transcript.append_assistant_fragment("Welcome")

        assert [(u.speaker, u.text) for u in transcript] == [
            (Speaker.ASSISTANT, "Hi"),
            (Speaker.USER, "Hello"),
            (Speaker.ASSISTANT, "Welcome"),
        ]

    def test_empty_user_entry_is_filled(self):
        transcript = Transcript()
        transcript.add_user_text("")
        transcript.add_user_text("Second try")

        assert transcript.to_wire() == [{"role": "user", "text": "Second try"}]

    def test_consecutive_user_entries(self):
        transcript = Transcript()
        transcript.add_user_text("One")
        transcript.add_user_text("Two")
        assert [u.text for u in transcript] == ["One", "Two"]

    def test_conversation_text(self):
        transcript = Transcript()
        transcript.append_assistant_fragment("Tell me about yourself.")
        transcript.add_user_text("I build bikes.")

        assert transcript.conversation_text() == "AI: Tell me about yourself.\nUser: I build bikes."

    def test_snapshot_is_immutable(self):
        transcript = Transcript()
        transcript.add_user_text("Hi")
        snapshot = transcript.utterances
        transcript.add_user_text("There")

        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)

    def test_clear(self):
        transcript = Transcript([Utterance(Speaker.USER, "Hi")])
        transcript.clear()
        assert len(transcript) == 0
        assert transcript.last is None

    def test_utterance_dict_roundtrip(self):
        utterance = Utterance.from_dict({"role": "ai", "text": "Hola"})
        assert utterance.speaker == Speaker.ASSISTANT
        assert utterance.timestamp is None
        assert utterance.to_dict() == {"role": "ai", "text": "Hola"}


@pytest.mark.unit
class TestWireModels:
    """Pydantic validation of request bodies."""

    def test_summary_request_default_context(self):
        request = SummaryRequest.model_validate({"conversationText": "AI: Hi"})
        assert request.scenarioContext == "practice session"

    def test_summary_request_requires_text(self):
        with pytest.raises(ValidationError):
            SummaryRequest.model_validate({"scenarioContext": "interview"})

    def test_process_request_requires_list(self):
        with pytest.raises(ValidationError):
            TranscriptProcessRequest.model_validate({"rawTranscript": "User: hi"})

    def test_utterance_list_rejects_unknown_role(self):
        with pytest.raises(ValidationError):
            UtteranceList.validate_python([{"role": "system", "text": "x"}])

    def test_utterance_list_from_json(self):
        payloads = UtteranceList.validate_json('[{"role": "user", "text": "Hi"}]')
        assert payloads[0].role == "user"
        assert payloads[0].text == "Hi"
