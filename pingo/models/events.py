"""Event models for the realtime side channel."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import ProtocolError


class ServerEventType(Enum):
    """Inbound side-channel message kinds the interpreter knows about."""
    RESPONSE_CREATED = "response.created"
    RESPONSE_AUDIO_DELTA = "response.audio.delta"
    RESPONSE_AUDIO_TRANSCRIPT_DELTA = "response.audio_transcript.delta"
    RESPONSE_DONE = "response.done"
    RESPONSE_AUDIO_TRANSCRIPT_DONE = "response.audio_transcript.done"
    RESPONSE_OUTPUT_ITEM_ADDED = "response.output_item.added"
    RESPONSE_CANCELLED = "response.cancelled"
    OUTPUT_AUDIO_BUFFER_STOPPED = "output_audio_buffer.stopped"
    OUTPUT_AUDIO_BUFFER_CLEARED = "output_audio_buffer.cleared"
    INPUT_AUDIO_TRANSCRIPTION_COMPLETED = "conversation.item.input_audio_transcription.completed"
    INPUT_AUDIO_BUFFER = "input_audio_buffer.*"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def from_wire(cls, type_name: str) -> "ServerEventType":
        if type_name.startswith("input_audio_buffer."):
            return cls.INPUT_AUDIO_BUFFER
        try:
            return cls(type_name)
        except ValueError:
            return cls.UNKNOWN


@dataclass
class ServerEvent:
    """One parsed inbound side-channel message."""
    kind: ServerEventType
    type_name: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def delta(self) -> Optional[str]:
        delta = self.payload.get("delta")
        return delta if isinstance(delta, str) else None

    @property
    def error_type(self) -> Optional[str]:
        error = self.payload.get("error")
        if isinstance(error, dict):
            return error.get("type")
        return None


def parse_server_event(raw: Any) -> ServerEvent:
    """Parse a raw side-channel frame.

    Raises:
        ProtocolError: if the frame is not a JSON object with a string ``type``
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Undecodable side-channel frame: {e}")

    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Non-JSON side-channel frame: {e}")

    if not isinstance(payload, dict):
        raise ProtocolError("Side-channel frame is not a JSON object")

    type_name = payload.get("type")
    if not isinstance(type_name, str):
        raise ProtocolError("Side-channel frame has no 'type' field")

    return ServerEvent(kind=ServerEventType.from_wire(type_name), type_name=type_name, payload=payload)
