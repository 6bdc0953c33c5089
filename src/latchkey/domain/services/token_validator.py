"""Token validation for emailed links.

Decides whether a presented (email, token) pair is acceptable for a given
purpose and, when it is not, which single reason to report. The checks run
in a fixed order and the first failure wins:

1. no email presented            -> NO_EMAIL_GIVEN
2. no token presented            -> NO_TOKEN_GIVEN
3. no user with that email       -> EMAIL_NOT_FOUND
4. emailCheck and already verified -> ALREADY_CONFIRMED (soft)
5. no sub-record, or already used -> LINK_ALREADY_USED
6. token does not match          -> TOKEN_MISMATCH
7. older than the purpose's TTL  -> TOKEN_EXPIRED
8. passwordChange and unverified -> EMAIL_NOT_CONFIRMED
9. accepted

Validation never mutates the user. Consuming an accepted token is the
caller's job and must be done with a conditional update.
"""

from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timedelta

from latchkey.core.logging import get_logger
from latchkey.domain.entities.auth_result import AuthReason, TokenValidation
from latchkey.domain.entities.token import OpaqueToken, TokenPurpose
from latchkey.domain.entities.user import User, normalize_email
from latchkey.domain.services.token_issuer import utc_now

logger = get_logger(__name__)

UserLookup = Callable[[str], Awaitable[User | None]]

DEFAULT_TTL = timedelta(hours=24)


class TokenValidator:
    """Validates presented tokens against the user store."""

    def __init__(
        self,
        find_user_by_email: UserLookup,
        ttls: Mapping[TokenPurpose, timedelta] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the validator.

        Args:
            find_user_by_email: Async lookup returning the user for an email, or None.
            ttls: Validity window per purpose. Missing purposes default to 24 hours.
            clock: Source of the current UTC time.
        """
        self.find_user_by_email = find_user_by_email
        self.ttls = dict(ttls or {})
        self.clock = clock

    def ttl_for(self, purpose: TokenPurpose) -> timedelta:
        """Return how long a token of ``purpose`` stays valid after issue."""
        return self.ttls.get(purpose, DEFAULT_TTL)

    async def validate(
        self,
        purpose: TokenPurpose,
        email: str | None,
        token: OpaqueToken | str | None,
    ) -> TokenValidation:
        """Validate a presented token.

        Args:
            purpose: Which flow the link belongs to.
            email: The identity claimed by the link.
            token: The raw token from the link.

        Returns:
            TokenValidation describing acceptance or the rejection reason.
        """
        if not email or not email.strip():
            return self._reject(purpose, AuthReason.NO_EMAIL_GIVEN)

        if not token:
            return self._reject(purpose, AuthReason.NO_TOKEN_GIVEN)
        if not isinstance(token, OpaqueToken):
            token = OpaqueToken(token)

        user = await self.find_user_by_email(normalize_email(email))
        if user is None:
            return self._reject(purpose, AuthReason.EMAIL_NOT_FOUND)

        if purpose is TokenPurpose.EMAIL_CHECK and user.email_verified:
            logger.info("Email already confirmed", user_id=user.id)
            return TokenValidation.reject(AuthReason.ALREADY_CONFIRMED, user=user)

        record = user.token_for(purpose)
        if record is None or record.used:
            return self._reject(purpose, AuthReason.LINK_ALREADY_USED, user)

        if not record.matches(token):
            return self._reject(purpose, AuthReason.TOKEN_MISMATCH, user)

        if record.is_expired(self.ttl_for(purpose), self.clock()):
            return self._reject(purpose, AuthReason.TOKEN_EXPIRED, user)

        if purpose is TokenPurpose.PASSWORD_CHANGE and not user.email_verified:
            return self._reject(purpose, AuthReason.EMAIL_NOT_CONFIRMED, user)

        return TokenValidation.accept(user)

    @staticmethod
    def _reject(
        purpose: TokenPurpose,
        reason: AuthReason,
        user: User | None = None,
    ) -> TokenValidation:
        logger.info(
            "Token rejected",
            purpose=purpose.value,
            reason=reason.value,
            user_id=user.id if user else None,
        )
        # Rejections never carry the user
        return TokenValidation.reject(reason)
