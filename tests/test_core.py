"""
Tests for settings lookups, error payloads, reporting and log redaction.
"""

import logging

from auth import PasswordVerifier
from core import RedactingFilter, get_resource_password, redact
from core.errors import InvalidCredentialError, RateLimitedError, UnexpectedFailureError
from core.reporting import ErrorReporter
from core.settings import get_settings, password_env_key


def test_password_env_key():
    assert password_env_key("adb") == "PROPOSAL_PASSWORD_ADB"


def test_resource_password_lookup(monkeypatch):
    monkeypatch.setenv("PROPOSAL_PASSWORD_ACME", "acme-pass")
    monkeypatch.setenv("PROPOSAL_PASSWORD_EMPTY", "")

    assert get_resource_password("acme") == "acme-pass"
    assert get_resource_password("empty") is None
    assert get_resource_password("missing") is None


def test_settings_defaults():
    settings = get_settings()

    assert settings.session_cookie_name == "auth-session"
    assert settings.session_max_age == 86400
    assert settings.auth_max_attempts == 10
    assert settings.auth_cooldown_seconds == 900
    assert not settings.is_production


def test_error_payloads():
    assert InvalidCredentialError(extra={"attemptsRemaining": 4}).to_payload() == {
        "success": False,
        "error": "Invalid password",
        "attemptsRemaining": 4,
    }
    assert RateLimitedError("Slow down").to_payload() == {"success": False, "error": "Slow down"}

    error = UnexpectedFailureError(context={"component": "x"})
    assert error.to_payload() == {"success": False, "error": "An error occurred"}
    assert error.status_code == 500


def test_alert_once_deduplicates():
    reporter = ErrorReporter(max_alert_keys=2)

    assert reporter.alert_once("a", "first")
    assert not reporter.alert_once("a", "again")
    assert reporter.alert_once("b", "second")
    assert reporter.alert_once("c", "third")
    # "a" was the oldest key and has been dropped
    assert reporter.alert_once("a", "first again")
    assert reporter.events == 4


def test_verifier_uses_constant_time_comparison():
    reporter = ErrorReporter()
    verifier = PasswordVerifier(reporter, lookup={"adb": "secret123"}.get)

    assert verifier.verify("adb", "secret123")
    assert not verifier.verify("adb", "secret12")
    assert not verifier.verify("adb", "")
    assert reporter.events == 0


def test_verifier_fails_closed_without_password():
    reporter = ErrorReporter()
    verifier = PasswordVerifier(reporter, lookup=lambda resource_id: None)

    assert not verifier.verify("zzz", "anything")
    assert reporter.events == 1


def test_redact_masks_password_links():
    assert redact("GET /proposal/adb?pw=secret123 HTTP/1.1") == "GET /proposal/adb?pw=[redacted] HTTP/1.1"
    assert redact("/?return=%2Fproposal%2Fadb&pw=s3cret") == "/?return=%2Fproposal%2Fadb&pw=[redacted]"
    assert redact("no secrets here") == "no secrets here"


def test_redacting_filter_rewrites_formatted_message():
    record = logging.LogRecord(
        name="uvicorn.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='%s - "%s %s"',
        args=("203.0.113.7", "GET", "/proposal/adb?pw=secret123"),
        exc_info=None,
    )

    assert RedactingFilter().filter(record)
    assert record.getMessage() == '203.0.113.7 - "GET /proposal/adb?pw=[redacted]"'
