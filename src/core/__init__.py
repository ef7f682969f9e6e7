"""
Core Module

Provides foundational utilities used across the application:
- Configuration management
- Logging setup
- Error taxonomy and reporting
"""

from .errors import (
    ConfigurationError,
    GateError,
    InvalidCredentialError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
    UnexpectedFailureError,
    ValidationFailedError,
)
from .logger import RedactingFilter, get_logger, redact, setup_logging
from .reporting import ErrorReporter, get_error_reporter
from .settings import (
    Settings,
    get_allowed_origins,
    get_resource_password,
    get_settings,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "get_allowed_origins",
    "get_resource_password",
    # Logging
    "get_logger",
    "setup_logging",
    "redact",
    "RedactingFilter",
    # Errors
    "GateError",
    "RateLimitedError",
    "ValidationFailedError",
    "InvalidCredentialError",
    "NotFoundError",
    "UnauthorizedError",
    "ConfigurationError",
    "UnexpectedFailureError",
    "ErrorReporter",
    "get_error_reporter",
]
