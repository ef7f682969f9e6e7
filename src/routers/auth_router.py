import math
import re
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from auth import (
    AttemptRateLimiter,
    PasswordVerifier,
    SessionStore,
    get_attempt_limiter,
    get_client_identifier,
    get_password_verifier,
    get_session_store,
)
from core.errors import GateError, InvalidCredentialError, RateLimitedError, UnexpectedFailureError
from core.logger import get_logger
from core.settings import Settings, get_settings

from .schemas import PasswordVerificationRequest, parse_body

logger = get_logger(__name__)

RESOURCE_PATTERN = re.compile(r"/proposal/([^/?#]+)")

# Remaining-attempt count at which the client gets a lockout warning
LOW_ATTEMPTS_WARNING = 3


auth_router = APIRouter(prefix="/auth", tags=["auth"])


def resolve_resource_id(return_url: str | None, default: str) -> str:
    """Take the resource id from a /proposal/<id> return URL."""
    if return_url:
        match = RESOURCE_PATTERN.search(return_url)
        if match:
            return match.group(1)
    return default


def safe_redirect(return_url: str | None, resource_id: str) -> str:
    """
    Only echo same-site relative return URLs; anything else goes to the resource.

    Browsers drop tab/CR/LF while parsing URLs and treat backslashes as
    slashes, so any control character or backslash disqualifies the URL.
    """
    fallback = f"/proposal/{resource_id}"
    if not return_url or not return_url.startswith("/"):
        return fallback
    if "\\" in return_url or any(ord(char) < 0x20 or ord(char) == 0x7F for char in return_url):
        return fallback
    if return_url.startswith("//"):
        return fallback

    parts = urlsplit(return_url)
    if parts.scheme or parts.netloc:
        return fallback
    return return_url


def format_wait(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds} second{'s' if seconds != 1 else ''}"
    minutes = math.ceil(seconds / 60)
    return f"{minutes} minute{'s' if minutes != 1 else ''}"


@auth_router.post("/verify")
async def verify_password(
    request: Request,
    settings: Settings = Depends(get_settings),
    limiter: AttemptRateLimiter = Depends(get_attempt_limiter),
    verifier: PasswordVerifier = Depends(get_password_verifier),
    session_store: SessionStore = Depends(get_session_store),
):
    """
    Verify a proposal password and issue a session cookie.

    Body: {"password": "...", "returnUrl": "/proposal/<id>"}

    Returns:
        {"success": true, "redirectUrl": "/proposal/<id>"}

    Raises:
        429: Client is cooling down after too many attempts
        400: Malformed body
        401: Wrong password
    """
    client = get_client_identifier(request.headers)

    try:
        result = limiter.check(client)
        if not result.allowed:
            wait = result.cooldown_remaining_seconds or 0
            raise RateLimitedError(
                f"Too many attempts. Please try again in {format_wait(wait)}.",
                extra={"cooldownRemaining": wait},
            )

        body = await parse_body(request, PasswordVerificationRequest)
        resource_id = resolve_resource_id(body.return_url, settings.default_resource_id)

        if not verifier.verify(resource_id, body.password):
            logger.warning(f"Invalid password for resource {resource_id} from {client}")
            extra: dict = {"attemptsRemaining": result.attempts_remaining}
            if result.attempts_remaining <= LOW_ATTEMPTS_WARNING:
                extra["message"] = (
                    f"{result.attempts_remaining} attempt{'s' if result.attempts_remaining != 1 else ''} "
                    "remaining before a temporary lockout."
                )
            raise InvalidCredentialError(extra=extra)

        limiter.reset(client)

        response = JSONResponse({"success": True, "redirectUrl": safe_redirect(body.return_url, resource_id)})
        session_store.create_session(response, resource_id)
        logger.info(f"Password verified for resource {resource_id} from {client}")
        return response

    except GateError:
        raise
    except Exception as e:
        raise UnexpectedFailureError(context={"component": "password-verification-error", "client": client}) from e


@auth_router.post("/logout")
async def logout(session_store: SessionStore = Depends(get_session_store)):
    """Drop the session cookie."""
    response = JSONResponse({"success": True})
    session_store.clear_session(response)
    return response
