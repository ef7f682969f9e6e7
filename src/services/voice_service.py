"""
Voice Service

Fetches short-lived signed conversation URLs for the voice demo widget
from the ElevenLabs Conversational AI API.
"""

from functools import lru_cache

import httpx

from core.logger import get_logger
from core.settings import get_settings

logger = get_logger(__name__)

SIGNED_URL_ENDPOINT = "https://api.elevenlabs.io/v1/convai/conversation/get_signed_url"


class VoiceServiceError(Exception):
    """Raised when the provider does not return a signed URL"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class VoiceService:
    def __init__(self, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self._transport = transport

    async def get_signed_url(self, agent_id: str, api_key: str) -> str:
        """
        Request a signed conversation URL for an agent

        Raises:
            VoiceServiceError: On a non-2xx response or a response without a URL
            httpx.HTTPError: On transport failures
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(
                SIGNED_URL_ENDPOINT,
                params={"agent_id": agent_id},
                headers={"xi-api-key": api_key},
            )

        if response.is_error:
            raise VoiceServiceError(
                f"ElevenLabs API returned {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise VoiceServiceError("ElevenLabs response was not JSON", status_code=response.status_code) from e

        signed_url = payload.get("signed_url") if isinstance(payload, dict) else None
        if not isinstance(signed_url, str) or not signed_url:
            raise VoiceServiceError("ElevenLabs response did not include a signed URL")

        logger.debug(f"Issued signed voice URL for agent {agent_id}")
        return signed_url


@lru_cache
def get_voice_service() -> VoiceService:
    return VoiceService(timeout=get_settings().http_timeout_seconds)
