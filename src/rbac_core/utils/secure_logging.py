"""Secure logging utilities to prevent information disclosure."""

import logging
import re
from functools import lru_cache
from typing import Any

from rbac_core.config import get_settings

# SQLAlchemy appends the statement and its bound parameters to error messages
_SQL_DETAIL_PATTERN = re.compile(r"\[(SQL|parameters): .*?\](?=\s*(\(|\[|$))", re.DOTALL)
_BACKGROUND_PATTERN = re.compile(r"\(Background on this error at: [^)]*\)")
_PATH_PATTERN = re.compile(r"['\"]?(/[a-zA-Z0-9_./\-]+|[A-Z]:\\[^\s'\"]+)['\"]?")
_URL_PATTERN = re.compile(r"(postgresql|postgres|sqlite|redis|http|https)(\+\w+)?://[^\s]+")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+")
_TOKEN_PATTERN = re.compile(r"[a-zA-Z0-9_\-]{32,}")

MAX_MESSAGE_LENGTH = 200


@lru_cache(maxsize=1)
def is_debug_mode() -> bool:
    """Check if application is running in debug mode."""
    return get_settings().debug


def sanitize_exception_message(error: Exception) -> str:
    """Sanitize a store or cache exception message for logs and error descriptors.

    Strips SQL statements and bound parameters, connection strings, file
    paths, email addresses and token-like strings, then truncates.

    Args:
        error: The exception to sanitize

    Returns:
        Sanitized error message
    """
    error_msg = str(error)
    error_msg = _SQL_DETAIL_PATTERN.sub("", error_msg)
    error_msg = _BACKGROUND_PATTERN.sub("", error_msg)
    error_msg = _URL_PATTERN.sub("[URL]", error_msg)
    error_msg = _PATH_PATTERN.sub("[PATH]", error_msg)
    error_msg = _EMAIL_PATTERN.sub("[EMAIL]", error_msg)
    error_msg = _TOKEN_PATTERN.sub("[TOKEN]", error_msg)
    error_msg = " ".join(error_msg.split())

    if len(error_msg) > MAX_MESSAGE_LENGTH:
        error_msg = error_msg[: MAX_MESSAGE_LENGTH - 3] + "..."

    return error_msg


def _log(level: int, logger: logging.Logger, message: str, error: Exception | None, **kwargs: Any) -> None:
    if is_debug_mode():
        if error:
            logger.log(level, "%s: %s", message, error, exc_info=level >= logging.ERROR, extra=kwargs)
        else:
            logger.log(level, message, extra=kwargs)
    elif error:
        logger.log(level, "%s: %s", message, sanitize_exception_message(error))
    else:
        logger.log(level, message)


def log_error(
    logger: logging.Logger,
    message: str,
    error: Exception | None = None,
    **kwargs: Any,
) -> None:
    """Log an error with appropriate detail level based on environment.

    In debug mode, logs full exception details and extra context.
    Otherwise logs the sanitized message only.

    Args:
        logger: The logger instance to use
        message: The log message (should be generic, no sensitive data)
        error: Optional exception to include
        **kwargs: Additional context, only attached in debug mode
    """
    _log(logging.ERROR, logger, message, error, **kwargs)


def log_warning(
    logger: logging.Logger,
    message: str,
    error: Exception | None = None,
    **kwargs: Any,
) -> None:
    """Log a warning with appropriate detail level based on environment."""
    _log(logging.WARNING, logger, message, error, **kwargs)
