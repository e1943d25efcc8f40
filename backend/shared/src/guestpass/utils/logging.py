"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helpers for access decision logging with masked secrets

Usage:
    from guestpass.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("device_registered", extra={"guest_id": "guest-123"})
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """Generate a new correlation ID.

    Returns:
        UUID-based correlation ID string
    """
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured log output with correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Correlation ID prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def mask_secret(value: str | None, visible: int = 6) -> str:
    """Mask a token or fingerprint for logging.

    Keeps the first ``visible`` characters so log lines stay correlatable
    without exposing the full credential.
    """
    if not value:
        return "***"
    return value[:visible] + "..."


def mask_identity(value: str | None) -> str:
    """Mask a phone number or email address for logging."""
    if not value:
        return "***"
    if "@" in value:
        return value[:3] + "***" + value[value.find("@") :]
    return "***" + value[-2:]


def log_access_event(
    logger: logging.Logger,
    event: str,
    *,
    guest_id: str | None = None,
    token: str | None = None,
    fingerprint: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log an access-control event with structured context.

    Args:
        logger: Logger instance
        event: Event name (e.g., "device_registered", "identity_mismatch")
        guest_id: Guest ID if known
        token: Invitation token (masked before logging)
        fingerprint: Device fingerprint (masked before logging)
        result: Outcome of the operation (granted, denied, restricted, ...)
        error: Error message if the operation failed unexpectedly
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"event": event}

    if guest_id:
        context["guest_id"] = guest_id
    if token:
        context["token"] = mask_secret(token)
    if fingerprint:
        context["fingerprint"] = mask_secret(fingerprint)
    if result:
        context["result"] = result
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Access event: {event}"]
    for key, value in context.items():
        if key != "event":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if error:
        logger.error(message, extra=context)
    elif result in ("denied", "restricted", "limit_reached", "mismatch"):
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)
