import httpx
from fastapi import APIRouter, Depends

from core.errors import ConfigurationError, UnexpectedFailureError
from core.logger import get_logger
from core.settings import Settings, get_settings
from services import VoiceService, VoiceServiceError, get_voice_service

logger = get_logger(__name__)


voice_router = APIRouter(prefix="/voice", tags=["voice"])


@voice_router.get("/signed-url")
async def get_signed_url(
    settings: Settings = Depends(get_settings),
    voice_service: VoiceService = Depends(get_voice_service),
):
    """
    Short-lived conversation URL for the voice demo widget.

    Returns:
        {"signedUrl": "wss://..."}

    Raises:
        500: Voice provider not configured or unavailable
    """
    agent_id = settings.elevenlabs_agent_id
    api_key = settings.elevenlabs_api_key

    if not agent_id or not api_key:
        raise ConfigurationError(
            context={
                "api": "elevenlabs-signed-url",
                "issue": "missing-env-vars",
                "has_agent_id": bool(agent_id),
                "has_api_key": bool(api_key),
            }
        )

    try:
        signed_url = await voice_service.get_signed_url(agent_id, api_key)
    except (VoiceServiceError, httpx.HTTPError) as e:
        raise UnexpectedFailureError(
            "Failed to generate signed URL",
            context={"api": "elevenlabs-signed-url", "issue": "api-error", "agent_id": agent_id},
        ) from e
    except Exception as e:
        raise UnexpectedFailureError(
            "Failed to generate signed URL",
            context={"api": "elevenlabs-signed-url", "issue": "unexpected-error", "agent_id": agent_id},
        ) from e

    return {"signedUrl": signed_url}
