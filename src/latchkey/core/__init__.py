"""Configuration, logging and exception types shared across latchkey."""

from latchkey.core.config import Settings, get_settings
from latchkey.core.exceptions import InfrastructureError, NotificationError, StoreError
from latchkey.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
    new_correlation_id,
)

__all__ = [
    "InfrastructureError",
    "NotificationError",
    "Settings",
    "StoreError",
    "bind_correlation_id",
    "clear_context",
    "configure_logging",
    "get_logger",
    "get_settings",
    "new_correlation_id",
]
