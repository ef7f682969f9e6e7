"""
Centralized logging configuration for the proposal gate.

One stdout handler is shared by the application and uvicorn. Password
links carry the password in the query string, so every record passing
through the handler has `pw=` values masked first.
"""

import logging
import re
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_SECRET_PATTERN = re.compile(r"((?:^|[?&\s])pw=)[^&\s\"']+")
REDACTED = "[redacted]"


def redact(text: str) -> str:
    """Mask `pw=` query values."""
    return _SECRET_PATTERN.sub(rf"\g<1>{REDACTED}", text)


class RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(level: str = "INFO") -> None:
    """
    Setup logging configuration for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()

    # Remove all existing handlers to prevent duplication
    while root_logger.handlers:
        root_logger.removeHandler(root_logger.handlers[0])

    root_logger.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(RedactingFilter())
    root_logger.addHandler(handler)

    # Route uvicorn through the root handler so formats match and
    # access lines are redacted
    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        log = logging.getLogger(logger_name)
        log.handlers = []
        log.propagate = True

    logging.getLogger("uvicorn.access").setLevel(logging.INFO if numeric_level <= logging.DEBUG else logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)

    for logger_name in ("httpcore", "httpx", "fontTools", "fpdf", "multipart", "asyncio"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
