"""Structured logging for approval-core.

This module provides structured logging functions that attach key/value
fields to every record, so registration, resolution, lifecycle and
dispatch events can be correlated by ``trace_id``, ``type_id`` and
``instance_id``.

Records are emitted on the ``approval_core`` logger of the standard
``logging`` package; hosts keep full control over handlers and levels.
``configure_logging()`` installs a key=value formatter for processes that
do not configure logging themselves.

Example:
    >>> from approval_core import log_info, log_error
    >>>
    >>> log_info("Approval created", {
    ...     "trace_id": "abc-123",
    ...     "type_id": "leave_approval",
    ... })
    >>>
    >>> try:
    ...     create()
    ... except Exception as e:
    ...     log_error(f"Create failed: {e}", {
    ...         "trace_id": "abc-123",
    ...         "error_type": type(e).__name__
    ...     })
"""

from __future__ import annotations

import logging as _stdlib_logging
from typing import Any

from .types import LogContext

LOGGER_NAME = "approval_core"

# Below DEBUG; stdlib logging has no TRACE level of its own.
TRACE = 5
_stdlib_logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "trace": TRACE,
    "debug": _stdlib_logging.DEBUG,
    "info": _stdlib_logging.INFO,
    "warn": _stdlib_logging.WARNING,
    "error": _stdlib_logging.ERROR,
}

_logger = _stdlib_logging.getLogger(LOGGER_NAME)


class FieldsFormatter(_stdlib_logging.Formatter):
    """Formatter that appends structured fields as ``key=value`` pairs."""

    def format(self, record: _stdlib_logging.LogRecord) -> str:
        base = super().format(record)
        fields = getattr(record, "fields", None)
        if not fields:
            return base
        rendered = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        return f"{base} {rendered}"


def set_log_level(level: str) -> None:
    """Set the level of the ``approval_core`` logger without adding handlers.

    Args:
        level: One of trace, debug, info, warn, error.

    Raises:
        ValueError: If the level name is unknown.
    """
    try:
        numeric_level = _LEVELS[level.lower()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level!r}") from None
    _logger.setLevel(numeric_level)


def configure_logging(level: str = "info") -> None:
    """Install a stream handler with the fields formatter.

    Safe to call more than once; only one handler is ever installed.

    Args:
        level: One of trace, debug, info, warn, error.

    Raises:
        ValueError: If the level name is unknown.
    """
    set_log_level(level)
    if not any(isinstance(h.formatter, FieldsFormatter) for h in _logger.handlers):
        handler = _stdlib_logging.StreamHandler()
        handler.setFormatter(
            FieldsFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        _logger.addHandler(handler)


def log_error(message: str, fields: dict[str, Any] | LogContext | None = None) -> None:
    """Log an ERROR level message with structured fields.

    Use this for failures that surface to the caller.

    Args:
        message: The log message.
        fields: Optional structured fields for context. Can be a dict
                or a LogContext instance.

    Example:
        >>> log_error("Remote create failed", {
        ...     "trace_id": "abc-123",
        ...     "error_message": "Connection timeout"
        ... })
    """
    _emit(_stdlib_logging.ERROR, message, fields)


def log_warn(message: str, fields: dict[str, Any] | LogContext | None = None) -> None:
    """Log a WARN level message with structured fields.

    Use this for degraded operation: overwrites, advisory failures,
    unroutable callbacks.

    Args:
        message: The log message.
        fields: Optional structured fields for context.
    """
    _emit(_stdlib_logging.WARNING, message, fields)


def log_info(message: str, fields: dict[str, Any] | LogContext | None = None) -> None:
    """Log an INFO level message with structured fields.

    Use this for lifecycle events and state transitions.

    Args:
        message: The log message.
        fields: Optional structured fields for context.
    """
    _emit(_stdlib_logging.INFO, message, fields)


def log_debug(message: str, fields: dict[str, Any] | LogContext | None = None) -> None:
    """Log a DEBUG level message with structured fields.

    Args:
        message: The log message.
        fields: Optional structured fields for context.
    """
    _emit(_stdlib_logging.DEBUG, message, fields)


def log_trace(message: str, fields: dict[str, Any] | LogContext | None = None) -> None:
    """Log a TRACE level message with structured fields.

    Use this for very verbose logging, like individual strategy attempts.
    This level is typically disabled in production.

    Args:
        message: The log message.
        fields: Optional structured fields for context.
    """
    _emit(TRACE, message, fields)


def _emit(
    level: int,
    message: str,
    fields: dict[str, Any] | LogContext | None,
) -> None:
    if not _logger.isEnabledFor(level):
        return
    _logger.log(level, message, extra={"fields": _normalize_fields(fields)})


def _normalize_fields(
    fields: dict[str, Any] | LogContext | None,
) -> dict[str, str] | None:
    """Normalize fields to a dict of strings.

    Args:
        fields: Input fields as dict, LogContext, or None.

    Returns:
        Dict with string values, or None if no fields.
    """
    if fields is None:
        return None

    if isinstance(fields, LogContext):
        # Convert LogContext to dict, excluding None values
        return {k: str(v) for k, v in fields.model_dump().items() if v is not None}

    return {k: str(v) for k, v in fields.items()}


__all__ = [
    "LOGGER_NAME",
    "TRACE",
    "FieldsFormatter",
    "configure_logging",
    "set_log_level",
    "log_error",
    "log_warn",
    "log_info",
    "log_debug",
    "log_trace",
]
