"""Client for the third-party speech and chat APIs used by the server."""

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..errors import UpstreamError

logger = logging.getLogger(__name__)


class OpenAIUpstream:
    """Simple client holding the service credential for server-side calls."""

    def __init__(self, api_key: str, base_url: str = "https://api.openai.com/v1"):
        """Initialize the upstream client.

        Args:
            api_key: OpenAI API key; never leaves the server
            base_url: API root, without a trailing slash
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')

        logger.info(f"OpenAIUpstream initialized for: {self.base_url}")

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def create_realtime_session(self, model: str, voice: str) -> Dict[str, Any]:
        """Mint a short-lived realtime session.

        Returns:
            The session object; it carries ``client_secret.value`` and its expiry

        Raises:
            UpstreamError: if the API call fails
        """
        data = {
            "model": model,
            "voice": voice,
            "turn_detection": None,
        }

        async with aiohttp.ClientSession() as session:
            async with session.post(f"{self.base_url}/realtime/sessions",
                                    headers=self._headers(), json=data) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise UpstreamError("Realtime session creation failed",
                                        status=response.status, body=error_text)
                return await response.json()

    async def transcribe(self, audio: bytes, filename: str, content_type: str,
                         model: str = "whisper-1") -> str:
        """Send an audio file for speech-to-text and return the text.

        Raises:
            UpstreamError: if the API call fails
        """
        form = aiohttp.FormData()
        form.add_field("file", audio, filename=filename, content_type=content_type)
        form.add_field("model", model)

        async with aiohttp.ClientSession() as session:
            async with session.post(f"{self.base_url}/audio/transcriptions",
                                    headers=self._headers(), data=form) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise UpstreamError("Transcription failed",
                                        status=response.status, body=error_text)
                result = await response.json()
                return result.get("text", "")

    async def chat(self, messages: List[Dict[str, str]], model: str,
                   temperature: float = 0.3, max_tokens: int = 500) -> Optional[str]:
        """Send a chat completion request and get the response text.

        Args:
            messages: Chat messages (role/content)
            model: Chat model to use
            temperature: Temperature for response generation (0.0 to 1.0)
            max_tokens: Maximum tokens in response

        Returns:
            The stripped reply, or None if the completion carries no text

        Raises:
            UpstreamError: if the API call fails
        """
        data = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        async with aiohttp.ClientSession() as session:
            async with session.post(f"{self.base_url}/chat/completions",
                                    headers=self._headers(), json=data) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise UpstreamError("Chat completion failed",
                                        status=response.status, body=error_text)
                result = await response.json()

        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.warning(f"Chat completion without a message: {e}")
            return None
        if not isinstance(content, str):
            logger.warning("Chat completion message has no text content")
            return None
        return content.strip()
