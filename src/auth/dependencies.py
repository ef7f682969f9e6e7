from functools import lru_cache

from core.logger import get_logger
from core.reporting import ErrorReporter, get_error_reporter
from core.settings import get_settings

from .password_verifier import PasswordVerifier
from .rate_limiter import AttemptRateLimiter, RateLimitRecord
from .session_codec import SessionCodec
from .session_store import SessionStore

logger = get_logger(__name__)


def lockout_notifier(reporter: ErrorReporter):
    """Build the on_lockout callback: one alert per identifier and cooldown episode."""

    def notify(identifier: str, cooldown_started: float, record: RateLimitRecord) -> None:
        reporter.alert_once(
            f"{identifier}:{cooldown_started:.3f}",
            "Password attempt limit reached",
            tags={"component": "password-verification", "issue": "rate-limit"},
            context={
                "client": identifier,
                "attempts": record.attempt_count,
                "cooldown_until": record.cooldown_until,
            },
        )

    return notify


@lru_cache
def get_session_codec() -> SessionCodec:
    """
    Get the global SessionCodec.

    Raises ConfigurationError when SESSION_SECRET is not set.
    """
    return SessionCodec(get_settings().session_secret)


@lru_cache
def get_session_store() -> SessionStore:
    settings = get_settings()
    return SessionStore(
        codec=get_session_codec(),
        cookie_name=settings.session_cookie_name,
        max_age=settings.session_max_age,
        secure=settings.is_production,
    )


@lru_cache
def get_attempt_limiter() -> AttemptRateLimiter:
    settings = get_settings()
    limiter = AttemptRateLimiter(
        max_attempts=settings.auth_max_attempts,
        window_seconds=settings.auth_window_seconds,
        cooldown_seconds=settings.auth_cooldown_seconds,
        cleanup_threshold=settings.auth_cleanup_threshold,
        retention_seconds=settings.auth_retention_seconds,
        on_lockout=lockout_notifier(get_error_reporter()),
    )
    logger.info(f"Attempt limiter: {settings.auth_max_attempts} attempts, {settings.auth_cooldown_seconds}s cooldown")
    return limiter


@lru_cache
def get_password_verifier() -> PasswordVerifier:
    return PasswordVerifier(reporter=get_error_reporter())


def reset_auth_singletons() -> None:
    """Drop cached auth components so they are rebuilt from current settings."""
    for factory in (get_session_codec, get_session_store, get_attempt_limiter, get_password_verifier):
        factory.cache_clear()
