"""Signaling client for establishing the realtime peer connection."""

import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from ..errors import RealtimeConnectionError

logger = logging.getLogger(__name__)


@dataclass
class SessionCredential:
    """Short-lived bearer credential minted by the token endpoint."""
    value: str
    expires_at: Optional[int] = None


class SignalingClient:
    """Fetches session credentials and exchanges SDP with the realtime service."""

    def __init__(self, api_base_url: str, realtime_url: str, model: str):
        """Initialize signaling client.

        Args:
            api_base_url: Base URL of the server hosting the token endpoint
            realtime_url: Remote realtime endpoint accepting SDP offers
            model: Realtime model name passed as a query parameter
        """
        self.token_url = api_base_url.rstrip('/') + "/session"
        self.realtime_url = realtime_url
        self.model = model

    async def fetch_credential(self) -> SessionCredential:
        """Request a short-lived credential from the token endpoint.

        Raises:
            RealtimeConnectionError: if the endpoint fails or returns no secret
        """
        logger.info(f"Requesting session credential from {self.token_url}")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(self.token_url) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise RealtimeConnectionError(
                            f"Token endpoint error: {response.status} - {error_text}"
                        )
                    data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise RealtimeConnectionError(f"Token endpoint unreachable: {e}") from e
        except ValueError as e:
            raise RealtimeConnectionError(f"Token endpoint returned invalid JSON: {e}") from e

        secret = data.get("client_secret") if isinstance(data, dict) else None
        value = secret.get("value") if isinstance(secret, dict) else None
        if not value:
            raise RealtimeConnectionError("No ephemeral token in session response")

        return SessionCredential(value=value, expires_at=secret.get("expires_at"))

    async def exchange(self, offer_sdp: str, credential: SessionCredential) -> str:
        """POST the local SDP offer and return the remote SDP answer.

        Raises:
            RealtimeConnectionError: on any non-success response
        """
        headers = {
            "Authorization": f"Bearer {credential.value}",
            "Content-Type": "application/sdp",
        }
        logger.info("Sending SDP offer to realtime service")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.realtime_url,
                    params={"model": self.model},
                    headers=headers,
                    data=offer_sdp,
                ) as response:
                    answer = await response.text()
                    if not 200 <= response.status < 300:
                        logger.error(f"Realtime negotiation failed: {response.status} {answer}")
                        raise RealtimeConnectionError(
                            f"Realtime negotiation failed: {response.status} {answer}"
                        )
        except aiohttp.ClientError as e:
            raise RealtimeConnectionError(f"Realtime service unreachable: {e}") from e

        logger.info("Got SDP answer from realtime service")
        return answer
