"""
Authentication Module

Password gate for proposal pages:
1. Bot Protection - Path, User-Agent and coarse rate filtering
2. Attempt Limiting - Per-client lockout after repeated failures
3. Password Verification - Per-proposal configured passwords
4. Sessions - AES-GCM encrypted cookie
"""

from .dependencies import (
    get_attempt_limiter,
    get_password_verifier,
    get_session_codec,
    get_session_store,
    reset_auth_singletons,
)
from .middleware import BotProtectionMiddleware
from .password_verifier import PasswordVerifier
from .rate_limiter import (
    AttemptRateLimiter,
    InMemoryRateLimiterStore,
    RateLimiterStore,
    RateLimitResult,
    RequestRateLimiter,
    get_client_identifier,
)
from .session_codec import Session, SessionCodec
from .session_store import SessionStore

__all__ = [
    "AttemptRateLimiter",
    "BotProtectionMiddleware",
    "InMemoryRateLimiterStore",
    "PasswordVerifier",
    "RateLimitResult",
    "RateLimiterStore",
    "RequestRateLimiter",
    "Session",
    "SessionCodec",
    "SessionStore",
    "get_attempt_limiter",
    "get_client_identifier",
    "get_password_verifier",
    "get_session_codec",
    "get_session_store",
    "reset_auth_singletons",
]
