import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Add project src to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from auth import AttemptRateLimiter, SessionCodec, SessionStore, reset_auth_singletons  # noqa: E402
from auth.dependencies import get_attempt_limiter, get_session_store, lockout_notifier  # noqa: E402
from core.reporting import ErrorReporter, get_error_reporter  # noqa: E402
from core.settings import get_settings  # noqa: E402
from services import get_contract_service, get_email_service, get_voice_service  # noqa: E402

TEST_SECRET = "test-session-secret-do-not-use"
TEST_PASSWORD = "secret123"
CLIENT_IP = "203.0.113.7"

_CLEARED_ENV = (
    "SENDGRID_API_KEY",
    "SENDGRID_FROM_EMAIL",
    "ELEVENLABS_AGENT_ID",
    "ELEVENLABS_API_KEY",
    "BOT_RATE_LIMIT_CAPACITY",
    "BOT_RATE_LIMIT_REFILL_RATE",
    "BOT_PROTECTION_ENABLED",
    "DEBUG",
)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def clear_caches() -> None:
    get_settings.cache_clear()
    reset_auth_singletons()
    get_error_reporter.cache_clear()
    for factory in (get_contract_service, get_email_service, get_voice_service):
        factory.cache_clear()


@pytest.fixture(autouse=True)
def gate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("SESSION_SECRET", TEST_SECRET)
    monkeypatch.setenv("PROPOSAL_PASSWORD_ADB", TEST_PASSWORD)
    monkeypatch.setenv("ENVIRONMENT", "development")
    for name in _CLEARED_ENV:
        monkeypatch.delenv(name, raising=False)
    clear_caches()
    yield
    clear_caches()


@pytest.fixture(scope="session")
def codec() -> SessionCodec:
    return SessionCodec(TEST_SECRET)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def reporter() -> ErrorReporter:
    return get_error_reporter()


@pytest.fixture()
def session_store(codec: SessionCodec, clock: FakeClock) -> SessionStore:
    return SessionStore(codec=codec, secure=False, clock=clock)


@pytest.fixture()
def limiter(clock: FakeClock, reporter: ErrorReporter) -> AttemptRateLimiter:
    return AttemptRateLimiter(
        max_attempts=10,
        window_seconds=900,
        cooldown_seconds=900,
        on_lockout=lockout_notifier(reporter),
        clock=clock,
    )


@pytest.fixture()
def app(session_store: SessionStore, limiter: AttemptRateLimiter) -> Iterator[FastAPI]:
    from main import create_app

    application = create_app()
    application.dependency_overrides[get_session_store] = lambda: session_store
    application.dependency_overrides[get_attempt_limiter] = lambda: limiter
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, headers={"X-Forwarded-For": CLIENT_IP}) as test_client:
        yield test_client


def session_cookie(client: TestClient, name: str = "auth-session") -> str | None:
    """Cookie values with '/', '+' or '=' come back quoted."""
    value = client.cookies.get(name)
    return value.strip('"') if value else None
