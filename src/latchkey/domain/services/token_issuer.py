"""Token issuance for email verification and password reset.

Issuing a token overwrites the user's sub-record for that purpose, which is
what makes any previously emailed link for the same purpose unusable. The
issuer never persists anything; callers commit the returned record along
with whatever mutation it accompanies.
"""

import secrets
from collections.abc import Callable
from datetime import datetime, timezone

from latchkey.core.logging import get_logger
from latchkey.domain.entities.token import OpaqueToken, TokenPurpose, TokenRecord
from latchkey.domain.entities.user import User

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Mints opaque single-use tokens and attaches them to users."""

    def __init__(
        self,
        token_bytes: int = 32,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the issuer.

        Args:
            token_bytes: Bytes of randomness per token (default 32, 256 bits).
            clock: Source of the current UTC time.
        """
        self.token_bytes = token_bytes
        self.clock = clock

    def generate(self) -> OpaqueToken:
        """Generate a URL-safe cryptographically secure random token."""
        return OpaqueToken(secrets.token_urlsafe(self.token_bytes))

    def issue(self, user: User, purpose: TokenPurpose) -> tuple[TokenRecord, OpaqueToken]:
        """Issue a new token for ``purpose`` and attach it to ``user``.

        Args:
            user: The user the token belongs to. Its sub-record is replaced.
            purpose: Which flow the token serves.

        Returns:
            A tuple of (stored TokenRecord, raw token to send to the user).
        """
        token = self.generate()
        record = TokenRecord(token_hash=token.digest(), created_at=self.clock(), used=False)
        user.set_token(purpose, record)

        logger.debug("Token issued", user_id=user.id, purpose=purpose.value)
        return record, token
