"""Realtime voice session: side-channel protocol, interpreter and controller."""

from .controller import RealtimeSessionController
from .interpreter import EventChannelInterpreter
from .publisher import SessionStatePublisher, TOPIC_CONNECTED, TOPIC_SPEAKING, TOPIC_TRANSCRIPT

__all__ = [
    "RealtimeSessionController",
    "EventChannelInterpreter",
    "SessionStatePublisher",
    "TOPIC_CONNECTED",
    "TOPIC_SPEAKING",
    "TOPIC_TRANSCRIPT",
]
