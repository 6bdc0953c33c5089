"""Domain services for the authentication flows."""

from latchkey.domain.services.auth_service import AuthService
from latchkey.domain.services.password_validator import (
    PasswordValidationError,
    PasswordValidator,
)
from latchkey.domain.services.token_issuer import TokenIssuer, utc_now
from latchkey.domain.services.token_validator import DEFAULT_TTL, TokenValidator

__all__ = [
    "AuthService",
    "DEFAULT_TTL",
    "PasswordValidationError",
    "PasswordValidator",
    "TokenIssuer",
    "TokenValidator",
    "utc_now",
]
