"""Structured logging for latchkey.

structlog renders JSON in production and a coloured console in development.
Requests bind a correlation ID so that every line emitted while handling one
sign-up or reset can be grouped. Raw tokens and passwords never reach the
output: ``redact_secrets`` masks them wherever they are passed as fields.
"""

import logging
import sys
import uuid
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from latchkey.core.config import Settings, get_settings

REDACTED = "[redacted]"

SECRET_FIELDS = frozenset(
    {
        "password",
        "new_password",
        "new_password_confirmation",
        "password_hash",
        "token",
        "session_token",
        "secret_key",
        "smtp_password",
    }
)


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask the value of any field whose name is a known secret."""
    for key in SECRET_FIELDS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def event_to_message(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        settings: Settings to read level and format from. Loaded from the
            environment when omitted.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_secrets,
        event_to_message,
    ]

    console = settings.is_development or settings.log_format == "console"
    if console:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=not console,
    )

    # sqlalchemy and aiosmtplib log through the stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    # PrintLoggerFactory ignores positional names, so carry it as context.
    # "logger" is taken by wrap_logger's own parameter.
    return structlog.get_logger(logger_name=name or "latchkey")


def new_correlation_id() -> str:
    return f"cid_{uuid.uuid4().hex[:12]}"


def bind_correlation_id(correlation_id: str) -> None:
    """Attach ``correlation_id`` to every log line in the current context."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
