"""Data models for the Pingo application."""

from .transcript import Speaker, Utterance, Transcript
from .scenario import Scenario, Language, ScenarioSelection
from .session import SpeakingState, RemoteStream, SessionState
from .events import ServerEventType, ServerEvent, parse_server_event
from .wire import UtterancePayload, SummaryRequest, TranscriptProcessRequest, UtteranceList

__all__ = [
    "Speaker",
    "Utterance",
    "Transcript",
    "Scenario",
    "Language",
    "ScenarioSelection",
    "SpeakingState",
    "RemoteStream",
    "SessionState",
    # Side-channel events
    "ServerEventType",
    "ServerEvent",
    "parse_server_event",
    # HTTP bodies
    "UtterancePayload",
    "SummaryRequest",
    "TranscriptProcessRequest",
    "UtteranceList",
]
