"""Outcome types returned by the token validator and the auth service.

Every expected outcome, including rejections, is a value. Callers switch on
``reason`` which is a stable machine-readable code.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from latchkey.domain.entities.user import User


class AuthReason(str, Enum):
    """Stable reason codes for non-plain outcomes."""

    VALIDATION_ERROR = "validation_error"
    PASSWORD_TOO_WEAK = "password_too_weak"
    EMAIL_TAKEN = "email_taken"
    UNAUTHORIZED = "unauthorized"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    NO_EMAIL_GIVEN = "no_email_given"
    NO_TOKEN_GIVEN = "no_token_given"
    EMAIL_NOT_FOUND = "email_not_found"
    LINK_ALREADY_USED = "link_already_used"
    TOKEN_MISMATCH = "token_mismatch"
    TOKEN_EXPIRED = "token_expired"
    ALREADY_CONFIRMED = "already_confirmed"
    NO_PASSWORD_PROVIDED = "no_password_provided"
    PASSWORD_MISMATCH = "password_mismatch"


REASON_MESSAGES: dict[AuthReason, str] = {
    AuthReason.VALIDATION_ERROR: "Validation error",
    AuthReason.PASSWORD_TOO_WEAK: (
        "Your password is not strong enough: it needs at least 8 characters, "
        "1 uppercase, 1 lowercase and 1 number"
    ),
    AuthReason.EMAIL_TAKEN: "This email is already registered",
    AuthReason.UNAUTHORIZED: "Unauthorized",
    AuthReason.EMAIL_NOT_CONFIRMED: "Your email is not confirmed, please confirm email",
    AuthReason.NO_EMAIL_GIVEN: "No email specified",
    AuthReason.NO_TOKEN_GIVEN: "No token specified",
    AuthReason.EMAIL_NOT_FOUND: "We don't have a user with this email",
    AuthReason.LINK_ALREADY_USED: "This link has already been used",
    AuthReason.TOKEN_MISMATCH: "Wrong credentials",
    AuthReason.TOKEN_EXPIRED: "This link is outdated, please ask for a new one",
    AuthReason.ALREADY_CONFIRMED: "You have already confirmed your email",
    AuthReason.NO_PASSWORD_PROVIDED: "No password provided",
    AuthReason.PASSWORD_MISMATCH: "Password and confirmation are different",
}


@dataclass(frozen=True)
class TokenValidation:
    """Result of presenting a token.

    ``accepted`` is True only when every check passed. ``ALREADY_CONFIRMED``
    comes back with ``accepted=False`` but with the user attached, since it
    is an idempotent success rather than a rejection.
    """

    accepted: bool
    reason: AuthReason | None = None
    user: User | None = None

    @classmethod
    def accept(cls, user: User) -> "TokenValidation":
        return cls(accepted=True, user=user)

    @classmethod
    def reject(cls, reason: AuthReason, user: User | None = None) -> "TokenValidation":
        return cls(accepted=False, reason=reason, user=user)


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an auth service operation.

    Attributes:
        ok: Whether the requested action took effect (or already had).
        reason: Reason code for rejections and soft outcomes.
        message: Human-readable message for the transport layer.
        user: The user concerned, when known and safe to expose.
        session_token: Session token on successful sign-up and log-in.
        session_expires_in: Lifetime of ``session_token`` in seconds.
        details: Per-field validation details.
        notification_sent: Whether the accompanying email went out.
        soft: Partial success that is actionable rather than an error.
    """

    ok: bool
    reason: AuthReason | None = None
    message: str = ""
    user: User | None = None
    session_token: str | None = None
    session_expires_in: int | None = None
    details: list[dict[str, Any]] = field(default_factory=list)
    notification_sent: bool | None = None
    soft: bool = False

    @classmethod
    def success(cls, message: str, **kwargs: Any) -> "AuthResult":
        return cls(ok=True, message=message, **kwargs)

    @classmethod
    def failure(
        cls,
        reason: AuthReason,
        message: str | None = None,
        **kwargs: Any,
    ) -> "AuthResult":
        return cls(ok=False, reason=reason, message=message or REASON_MESSAGES[reason], **kwargs)
