"""Outbound side-channel messages understood by the realtime service."""

import json
from typing import Any, Dict


def session_update(instructions: str, voice: str, temperature: float,
                   transcription_model: str = "whisper-1") -> Dict[str, Any]:
    """Configure the remote session for text-in/audio-out turns.

    Automatic turn detection is disabled; turns are driven by push-to-talk.
    """
    return {
        "type": "session.update",
        "session": {
            "instructions": instructions,
            "voice": voice,
            "temperature": temperature,
            "turn_detection": None,
            "input_audio_format": "pcm16",
            "input_audio_transcription": {"model": transcription_model},
        },
    }


def response_create() -> Dict[str, Any]:
    return {"type": "response.create"}


def response_cancel() -> Dict[str, Any]:
    return {"type": "response.cancel"}


def output_audio_buffer_clear() -> Dict[str, Any]:
    return {"type": "output_audio_buffer.clear"}


def conversation_item_truncate() -> Dict[str, Any]:
    return {"type": "conversation.item.truncate", "item_id": None}


def user_text_item(text: str) -> Dict[str, Any]:
    return {
        "type": "conversation.item.create",
        "item": {
            "type": "message",
            "role": "user",
            "content": [{"type": "input_text", "text": text}],
        },
    }


def encode(message: Dict[str, Any]) -> str:
    return json.dumps(message)
