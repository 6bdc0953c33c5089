"""Authentication infrastructure: password hashing and session tokens."""

from latchkey.infrastructure.auth.password_hasher import (
    DUMMY_PASSWORD_HASH,
    hash_password,
    hash_password_async,
    verify_password,
    verify_password_async,
)
from latchkey.infrastructure.auth.session_tokens import (
    InvalidSessionError,
    SessionClaims,
    SessionExpiredError,
    SessionTokenError,
    SessionTokenService,
)

__all__ = [
    "DUMMY_PASSWORD_HASH",
    "InvalidSessionError",
    "SessionClaims",
    "SessionExpiredError",
    "SessionTokenError",
    "SessionTokenService",
    "hash_password",
    "hash_password_async",
    "verify_password",
    "verify_password_async",
]
