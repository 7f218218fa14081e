"""Pydantic schemas for the JSON bodies exchanged with the server."""

from typing import List, Literal

from pydantic import BaseModel, TypeAdapter


class UtterancePayload(BaseModel):
    """One transcript entry as it travels over HTTP."""
    role: Literal["user", "ai"]
    text: str


class SummaryRequest(BaseModel):
    conversationText: str
    scenarioContext: str = "practice session"


class TranscriptProcessRequest(BaseModel):
    rawTranscript: List[UtterancePayload]
    scenarioType: str = "practice"


UtteranceList = TypeAdapter(List[UtterancePayload])
