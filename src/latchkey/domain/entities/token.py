"""Token value types for email verification and password reset links.

A raw token travels only inside the emailed link. Users store a
``TokenRecord`` holding the SHA-256 digest of that value together with the
issue time and a single-use flag.
"""

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum


class TokenPurpose(str, Enum):
    """Which flow a token serves."""

    EMAIL_CHECK = "emailCheck"
    PASSWORD_CHANGE = "passwordChange"

    @property
    def field_name(self) -> str:
        """Attribute/column prefix used for this purpose's sub-record."""
        return "email_check" if self is TokenPurpose.EMAIL_CHECK else "password_change"


def digest_token(value: str) -> str:
    """Return the SHA-256 hex digest of a raw token value."""
    return hashlib.sha256(value.encode()).hexdigest()


class OpaqueToken:
    """An unguessable token value presented in a link.

    Equality is constant-time and the value is never shown by ``repr`` so
    that tokens do not leak into logs or tracebacks.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        if not value:
            raise ValueError("Token value is required")
        self._value = value

    @property
    def value(self) -> str:
        return self._value

    def digest(self) -> str:
        return digest_token(self._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OpaqueToken):
            other_value = other._value
        elif isinstance(other, str):
            other_value = other
        else:
            return NotImplemented
        return hmac.compare_digest(self._value.encode(), other_value.encode())

    def __hash__(self) -> int:
        return hash(self.digest())

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return "OpaqueToken(<redacted>)"


@dataclass(frozen=True)
class TokenRecord:
    """Per-purpose token sub-record stored on a user.

    Attributes:
        token_hash: SHA-256 digest of the issued raw token.
        created_at: When the token was issued (timezone-aware UTC).
        used: Whether the token has been consumed.
    """

    token_hash: str
    created_at: datetime
    used: bool = False

    def __post_init__(self) -> None:
        if self.created_at.tzinfo is None:
            object.__setattr__(self, "created_at", self.created_at.replace(tzinfo=timezone.utc))

    def matches(self, token: OpaqueToken) -> bool:
        """Compare a presented token against the stored digest in constant time."""
        return hmac.compare_digest(self.token_hash, token.digest())

    def is_expired(self, ttl: timedelta, now: datetime) -> bool:
        """Check expiry at presentation time: strictly older than ``ttl``."""
        return now - self.created_at > ttl
