"""Logging and observability configuration using Pydantic Logfire.

This module provides standardized logging utilities and configuration.
All modules should use Python's standard logging library (logging.getLogger(__name__)),
and Logfire will automatically capture and enrich these logs.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_context(logger, "info", "Message", family_id="123", week_start_date="2024-01-01")
"""

import logging

import logfire

from src.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Records emitted through the standard logging module are forwarded to Logfire.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="choreweek",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(handlers=[logfire.LogfireLoggingHandler()], level=logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("week_schedule_service.get_week_schedule"):
            # Your service logic here
            pass
    """
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (family_id, week_start_date, task_id, etc.)

    Usage:
        log_with_context(logger, "info", "Override applied", family_id="123", inserted=4)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_family_context(
    logger: logging.Logger,
    level: str,
    message: str,
    family_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message with family context.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        family_id: Family ID to include in context
        **extra: Additional context fields
    """
    context = {"family_id": family_id, **extra} if family_id else extra
    log_with_context(logger, level, message, **context)
