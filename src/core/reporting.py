"""
Error Reporting

Structured error/telemetry sink. Events are written to the `reporting`
logger with their tags and context so any log shipper can forward them.

Alerts are deduplicated by key: the caller decides what an "episode" is
(e.g. identifier plus cooldown start) and the reporter fires at most once
per key.
"""

import threading
from functools import lru_cache
from typing import Any

from core.logger import get_logger

logger = get_logger("reporting")

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40, "fatal": 50}


class ErrorReporter:
    def __init__(self, max_alert_keys: int = 10_000):
        """
        Initialize Error Reporter

        Args:
            max_alert_keys: Dedup keys retained before the oldest are dropped
        """
        self.max_alert_keys = max_alert_keys
        self._alert_keys: dict[str, None] = {}
        self._lock = threading.Lock()
        self.events: int = 0

    def capture_exception(
        self,
        error: BaseException,
        tags: dict[str, str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Report an exception with full traceback."""
        self.events += 1
        logger.error(
            f"{type(error).__name__}: {error} tags={tags or {}} context={context or {}}",
            exc_info=(type(error), error, error.__traceback__),
        )

    def capture_message(
        self,
        message: str,
        level: str = "error",
        tags: dict[str, str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Report a message-only event."""
        self.events += 1
        logger.log(_LEVELS.get(level, 40), f"{message} tags={tags or {}} context={context or {}}")

    def alert_once(
        self,
        dedup_key: str,
        message: str,
        tags: dict[str, str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> bool:
        """
        Report an operator alert unless one was already sent for this key

        Returns:
            True if the alert was emitted, False if it was a duplicate
        """
        with self._lock:
            if dedup_key in self._alert_keys:
                return False
            self._alert_keys[dedup_key] = None
            while len(self._alert_keys) > self.max_alert_keys:
                del self._alert_keys[next(iter(self._alert_keys))]

        self.capture_message(message, level="warning", tags=tags, context=context)
        return True


@lru_cache
def get_error_reporter() -> ErrorReporter:
    """
    Get the singleton error reporter.
    LRU cache ensures we always get the same instance.
    """
    return ErrorReporter()
