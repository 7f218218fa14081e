"""Realtime session state models."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from .scenario import ScenarioSelection


class SpeakingState(Enum):
    """Whether the assistant is currently producing a response."""
    IDLE = "idle"
    SPEAKING = "speaking"


class RemoteStream:
    """Remote media tracks delivered by the peer connection."""

    def __init__(self):
        self.tracks: List[Any] = []

    def add_track(self, track: Any) -> None:
        self.tracks.append(track)

    @property
    def audio_tracks(self) -> List[Any]:
        return [t for t in self.tracks if getattr(t, "kind", None) == "audio"]


@dataclass
class SessionState:
    """Everything one connection attempt owns.

    Handles and one-shot flags live together so that teardown can reset
    them in one place.
    """
    peer_connection: Any = None
    channel: Any = None
    local_track: Any = None
    remote_stream: RemoteStream = field(default_factory=RemoteStream)
    interpreter: Any = None
    scenario: Optional[ScenarioSelection] = None
    greeting_sent: bool = False
    # True from push-to-talk start until the turn is submitted. Remote input
    # events are dropped regardless; the terminal client shows it as PROCESSING.
    ignore_remote_audio: bool = False
    processing: bool = False
    closed: bool = False
    channel_open: asyncio.Event = field(default_factory=asyncio.Event)
    greeting_handle: Optional[asyncio.TimerHandle] = None

    @property
    def channel_ready(self) -> bool:
        return (
            not self.closed
            and self.channel is not None
            and getattr(self.channel, "readyState", None) == "open"
        )

    def reset_flags(self) -> None:
        self.greeting_sent = False
        self.ignore_remote_audio = False
        self.processing = False
