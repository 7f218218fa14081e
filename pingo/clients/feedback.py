"""Clients for the post-conversation summary and transcript-correction endpoints."""

import logging
from typing import List

import aiohttp
from pydantic import ValidationError

from ..config.scenarios import scenario_context
from ..errors import SummaryError
from ..models.scenario import Scenario
from ..models.transcript import Transcript, Utterance
from ..models.wire import UtteranceList

logger = logging.getLogger(__name__)


class FeedbackClient:
    """Requests a performance summary and a corrected transcript."""

    def __init__(self, api_base_url: str):
        base = api_base_url.rstrip('/')
        self.summary_url = base + "/api/summary"
        self.correction_url = base + "/api/transcript/process"

    async def summarize(self, transcript: Transcript, scenario: Scenario) -> str:
        """Get feedback on the conversation.

        Raises:
            SummaryError: if the endpoint fails
        """
        body = {
            "conversationText": transcript.conversation_text(),
            "scenarioContext": scenario_context(scenario),
        }
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.summary_url, json=body) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise SummaryError("Failed to generate summary", status=response.status, body=error_text)
                    data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise SummaryError(f"Summary endpoint unreachable: {e}") from e
        except ValueError as e:
            raise SummaryError(f"Summary endpoint returned invalid JSON: {e}") from e

        summary = data.get("summary") if isinstance(data, dict) else None
        if not isinstance(summary, str):
            raise SummaryError("Summary response has no summary")
        return summary

    async def correct_transcript(self, transcript: Transcript, scenario: Scenario) -> List[Utterance]:
        """Get a corrected copy of the transcript.

        Never raises: any failure or malformed response yields the original
        utterances unchanged.
        """
        raw = [Utterance(u.speaker, u.text, u.timestamp) for u in transcript]
        body = {"rawTranscript": transcript.to_wire(), "scenarioType": scenario.value}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.correction_url, json=body) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        logger.warning(f"Transcript correction failed: {response.status} - {error_text}")
                        return raw
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"Transcript correction unavailable, using original transcript: {e}")
            return raw

        try:
            payloads = UtteranceList.validate_python(
                data.get("processedTranscript") if isinstance(data, dict) else None
            )
        except ValidationError as e:
            logger.warning(f"Malformed corrected transcript, using original: {e.error_count()} errors")
            return raw

        return [Utterance.from_dict(p.model_dump()) for p in payloads]
