"""Domain entities for latchkey.

Entities are pure Python dataclasses and value types. They have no
dependencies on infrastructure or external frameworks.
"""

from latchkey.domain.entities.auth_result import (
    REASON_MESSAGES,
    AuthReason,
    AuthResult,
    TokenValidation,
)
from latchkey.domain.entities.token import OpaqueToken, TokenPurpose, TokenRecord, digest_token
from latchkey.domain.entities.user import User, normalize_email

__all__ = [
    "AuthReason",
    "AuthResult",
    "OpaqueToken",
    "REASON_MESSAGES",
    "TokenPurpose",
    "TokenRecord",
    "TokenValidation",
    "User",
    "digest_token",
    "normalize_email",
]
