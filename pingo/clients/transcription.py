"""Client for the transcription proxy endpoint."""

import logging

import aiohttp

from ..errors import TranscriptionError

logger = logging.getLogger(__name__)


class TranscriptionClient:
    """Sends recorded speech to the transcription endpoint."""

    def __init__(self, api_base_url: str, model: str = "whisper-1",
                 filename: str = "speech.wav", content_type: str = "audio/wav"):
        self.url = api_base_url.rstrip('/') + "/api/openai/audio/transcriptions"
        self.model = model
        self.filename = filename
        self.content_type = content_type

    async def transcribe(self, audio: bytes) -> str:
        """Transcribe an audio file and return the recognized text.

        Raises:
            TranscriptionError: if the endpoint returns a non-success response
        """
        form = aiohttp.FormData()
        form.add_field("file", audio, filename=self.filename, content_type=self.content_type)
        form.add_field("model", self.model)

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, data=form) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise TranscriptionError(
                            f"Transcription failed: {response.status} - {error_text}"
                        )
                    data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise TranscriptionError(f"Transcription endpoint unreachable: {e}") from e
        except ValueError as e:
            raise TranscriptionError(f"Transcription endpoint returned invalid JSON: {e}") from e

        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise TranscriptionError("Transcription response has no text")

        logger.info(f"Transcribed {len(audio)} bytes: '{text}'")
        return text
