"""HTTP clients for the token, signaling, transcription and feedback endpoints."""

from .signaling import SignalingClient, SessionCredential
from .transcription import TranscriptionClient
from .feedback import FeedbackClient

__all__ = [
    "SignalingClient",
    "SessionCredential",
    "TranscriptionClient",
    "FeedbackClient",
]
