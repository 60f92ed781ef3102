"""
Helpers for the `message | key=value | ...` log line format used across the service.
"""

import logging
from typing import Optional


def format_context(message: str, user_id: Optional[str] = None, **kwargs) -> str:
    """Append non-empty context pairs to a log message."""
    context_parts = []
    if user_id:
        context_parts.append(f"user_id={user_id}")
    for key, value in kwargs.items():
        if value is not None:
            context_parts.append(f"{key}={value}")

    if not context_parts:
        return message
    return f"{message} | " + " | ".join(context_parts)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    user_id: Optional[str] = None,
    exc_info: bool = False,
    **kwargs,
):
    """
    Log a message with structured context.

    Args:
        logger: The logger instance
        level: Log level (logging.INFO, logging.WARNING, etc.)
        message: The log message
        user_id: Optional user ID for context
        exc_info: Attach the active exception traceback
        **kwargs: Additional context key-value pairs
    """
    logger.log(level, format_context(message, user_id, **kwargs), exc_info=exc_info)


def log_info(logger: logging.Logger, message: str, user_id: Optional[str] = None, **kwargs):
    log_with_context(logger, logging.INFO, message, user_id, **kwargs)


def log_warning(logger: logging.Logger, message: str, user_id: Optional[str] = None, **kwargs):
    log_with_context(logger, logging.WARNING, message, user_id, **kwargs)


def log_error(
    logger: logging.Logger,
    message: str,
    user_id: Optional[str] = None,
    exc_info: bool = False,
    **kwargs,
):
    log_with_context(logger, logging.ERROR, message, user_id, exc_info=exc_info, **kwargs)
