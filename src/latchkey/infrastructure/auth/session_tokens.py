"""Session tokens returned after a successful sign-up or log-in.

Sessions are HS256 JWTs (PyJWT) carrying the user id as ``sub`` and the
email the user authenticated with. They are stateless: nothing is stored,
and a token stays valid until it expires.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from latchkey.core.config import Settings, get_settings


class SessionTokenError(Exception):
    """Raised when a session token cannot be accepted."""


class SessionExpiredError(SessionTokenError):
    pass


class InvalidSessionError(SessionTokenError):
    pass


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


class SessionTokenService:
    """Issues and verifies session tokens."""

    algorithm = "HS256"
    issuer = "latchkey"
    audience = "latchkey:session"

    def __init__(self, secret_key: str | None = None, settings: Settings | None = None) -> None:
        """Initialize the service.

        Args:
            secret_key: Signing key. Defaults to ``settings.secret_key``.
            settings: Settings to read the key and lifetime from. Defaults to
                the cached settings, looked up on every call.
        """
        self._secret_key = secret_key
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def lifetime(self) -> timedelta:
        return timedelta(minutes=self.settings.access_token_expire_minutes)

    def issue(self, user_id: str, email: str, lifetime: timedelta | None = None) -> str:
        """Create a session token for ``user_id``."""
        issued_at = datetime.now(timezone.utc)
        claims = {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + (lifetime if lifetime is not None else self.lifetime),
        }
        return jwt.encode(claims, self._secret_key or self.settings.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> SessionClaims:
        """Check signature, issuer, audience and expiry of a session token.

        Raises:
            SessionExpiredError: If the token has expired.
            InvalidSessionError: For any other defect.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_key or self.settings.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise SessionExpiredError("Session has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidSessionError(str(e)) from e

        return SessionClaims(
            user_id=claims["sub"],
            email=claims.get("email", ""),
            issued_at=datetime.fromtimestamp(claims["iat"], timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], timezone.utc),
        )
