"""
Password Verifier

Compares a submitted password with the one configured for a resource.
Passwords are plaintext configuration values; there is no hashing.
"""

import hmac
from collections.abc import Callable

from core.errors import ConfigurationError
from core.logger import get_logger
from core.reporting import ErrorReporter
from core.settings import get_resource_password, password_env_key

logger = get_logger(__name__)


class PasswordVerifier:
    def __init__(
        self,
        reporter: ErrorReporter,
        lookup: Callable[[str], str | None] = get_resource_password,
    ):
        """
        Initialize Password Verifier

        Args:
            reporter: Sink for configuration errors
            lookup: Returns the expected password for a resource id, or None
        """
        self.reporter = reporter
        self.lookup = lookup

    def verify(self, resource_id: str, candidate: str) -> bool:
        """
        Check a candidate password for a resource

        A resource without a configured password never verifies.
        """
        expected = self.lookup(resource_id)

        if not expected:
            logger.error(f"No password configured for resource: {resource_id}")
            self.reporter.capture_exception(
                ConfigurationError(f"No password configured for resource: {resource_id}"),
                tags={"component": "password-verification", "resource_id": resource_id},
                context={"env_key": password_env_key(resource_id)},
            )
            return False

        return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
