"""User entity for authentication and account recovery.

Users are uniquely identified by their (normalised, case-insensitive) email
address. Each user carries at most one token sub-record per purpose.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from latchkey.domain.entities.token import TokenPurpose, TokenRecord


def normalize_email(email: str) -> str:
    """Normalise an email address into the identity key used by the store."""
    return email.strip().lower()


@dataclass
class User:
    """User entity.

    Attributes:
        id: Unique identifier (UUID string).
        email: Normalised email address (unique identity key).
        first_name: Given name, required.
        password_hash: Argon2 hash of the password (never plaintext).
        email_verified: Whether the email address has been confirmed.
        email_check: Outstanding or just-consumed verification token.
        password_change: Outstanding or just-consumed reset token.
        created_at: Timestamp when the user was created.
        last_login: Timestamp of last successful log-in (nullable).
    """

    id: str
    email: str
    first_name: str
    password_hash: str
    email_verified: bool = False
    email_check: TokenRecord | None = None
    password_change: TokenRecord | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_login: datetime | None = None

    def __post_init__(self) -> None:
        """Validate user data after initialization."""
        if not self.id:
            raise ValueError("User ID is required")
        if not self.email:
            raise ValueError("Email is required")
        if not self.first_name or not self.first_name.strip():
            raise ValueError("First name is required")
        if not self.password_hash:
            raise ValueError("Password hash is required")

    def token_for(self, purpose: TokenPurpose) -> TokenRecord | None:
        """Return the stored token record for ``purpose``, or None if none was issued."""
        return getattr(self, purpose.field_name)

    def set_token(self, purpose: TokenPurpose, record: TokenRecord | None) -> None:
        """Replace the token record for ``purpose``; None clears the slot."""
        setattr(self, purpose.field_name, record)
