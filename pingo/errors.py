"""Error types raised by Pingo components."""

from typing import Optional


class PingoError(Exception):
    """Base class for all Pingo errors."""


class RealtimeConnectionError(PingoError, ConnectionError):
    """Credential fetch or signaling failed; the session cannot be established."""


class MicrophonePermissionError(PingoError, PermissionError):
    """Microphone access was denied or no input device is available."""


class TranscriptionError(PingoError):
    """The transcription endpoint did not return recognized text."""


class ProtocolError(PingoError):
    """A side-channel payload could not be understood."""


class UpstreamError(PingoError):
    """The third-party API answered with a non-success status.

    The raw body is kept for server-side logging only and is never sent
    back to a client.
    """

    def __init__(self, message: str, status: int = 500, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class SummaryError(UpstreamError):
    """The conversation summary could not be produced."""
