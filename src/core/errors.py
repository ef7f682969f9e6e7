"""
Error taxonomy for the gate.

Every error carries the HTTP status it maps to and a message that is safe
to show to the client. Anything extra the client may see goes in `extra`;
server-side detail goes in `context` and never leaves the process.
"""

from typing import Any


class GateError(Exception):
    """Base exception for gate errors"""

    status_code: int = 500
    public_message: str = "An error occurred"

    def __init__(
        self,
        message: str | None = None,
        extra: dict[str, Any] | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        self.extra = extra or {}
        self.context = context or {}

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, **self.extra}


class RateLimitedError(GateError):
    """Raised when a client is in cooldown"""

    status_code = 429
    public_message = "Too many attempts. Please try again later."


class ValidationFailedError(GateError):
    """Raised when a request body is malformed"""

    status_code = 400
    public_message = "Invalid request"


class InvalidCredentialError(GateError):
    """Raised when the password does not match a configured resource"""

    status_code = 401
    public_message = "Invalid password"


class UnauthorizedError(GateError):
    """Raised when a protected resource is requested without a valid session"""

    status_code = 401
    public_message = "Unauthorized"


class ConfigurationError(GateError):
    """Raised when required server configuration is missing"""

    status_code = 500
    public_message = "Service configuration error"


class UnexpectedFailureError(GateError):
    """Raised for failures of external collaborators"""

    status_code = 500
    public_message = "An error occurred"


class NotFoundError(GateError):
    """Raised for unknown gated resources"""

    status_code = 404
    public_message = "Not found"
