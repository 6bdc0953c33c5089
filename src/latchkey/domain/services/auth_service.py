"""Service for sign-up, log-in, email confirmation and password recovery.

This is the only component that writes to the user store and triggers
emails. Each operation runs its store work in one unit of work: committed
together on success, rolled back on any error or cancellation. Emails go
out only after the commit, and a failed send never rolls back a token.
"""

import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from latchkey.core.config import Settings, get_settings
from latchkey.core.exceptions import StoreError
from latchkey.core.logging import get_logger
from latchkey.domain.entities.auth_result import AuthReason, AuthResult
from latchkey.domain.entities.token import OpaqueToken, TokenPurpose
from latchkey.domain.entities.user import User, normalize_email
from latchkey.domain.services.password_validator import PasswordValidator
from latchkey.domain.services.token_issuer import TokenIssuer, utc_now
from latchkey.domain.services.token_validator import TokenValidator
from latchkey.infrastructure.auth.password_hasher import (
    DUMMY_PASSWORD_HASH,
    hash_password_async,
    verify_password_async,
)
from latchkey.infrastructure.auth.session_tokens import SessionTokenService
from latchkey.infrastructure.persistence.repositories.user_repository import UserRepository
from latchkey.infrastructure.services.notifier import EmailNotifier, NotificationTemplate

logger = get_logger(__name__)


def _missing(field: str, message: str) -> dict[str, str]:
    return {"field": field, "message": message, "code": "required"}


class AuthService:
    """Orchestrates the credential and token lifecycles."""

    def __init__(
        self,
        session: AsyncSession,
        notifier: EmailNotifier,
        user_repo: UserRepository | None = None,
        settings: Settings | None = None,
        password_validator: PasswordValidator | None = None,
        token_issuer: TokenIssuer | None = None,
        session_tokens: SessionTokenService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the auth service.

        Args:
            session: SQLAlchemy async session owning the unit of work.
            notifier: Sends verification and reset emails.
            user_repo: Repository for user operations (built from session if omitted).
            settings: Settings providing TTLs and password policy.
            password_validator: Password policy (built from settings if omitted).
            token_issuer: Token issuer (built with ``clock`` if omitted).
            session_tokens: Session token service.
            clock: Source of the current UTC time.
        """
        self.session = session
        self.notifier = notifier
        self.user_repo = user_repo or UserRepository(session)
        self.settings = settings or get_settings()
        self.password_validator = password_validator or PasswordValidator(
            min_length=self.settings.password_min_length
        )
        self.token_issuer = token_issuer or TokenIssuer(clock=clock)
        self.token_validator = TokenValidator(
            self.user_repo.find_by_email,
            ttls={
                TokenPurpose.EMAIL_CHECK: self.settings.email_check_ttl,
                TokenPurpose.PASSWORD_CHANGE: self.settings.password_change_ttl,
            },
            clock=clock,
        )
        self.session_tokens = session_tokens or SessionTokenService(settings=self.settings)

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[None]:
        """Commit on success; roll back on any exception, including cancellation."""
        try:
            yield
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("User store failure", error=str(e))
            raise StoreError(str(e)) from e
        except BaseException:
            await self.session.rollback()
            raise

    def _session_for(self, user: User) -> dict:
        lifetime = self.session_tokens.lifetime
        return {
            "session_token": self.session_tokens.issue(user.id, user.email, lifetime),
            "session_expires_in": int(lifetime.total_seconds()),
        }

    @staticmethod
    def _as_token(token: str | None) -> OpaqueToken | None:
        return OpaqueToken(token) if token else None

    def _weak_password(self, password: str, field: str = "password") -> AuthResult | None:
        errors = self.password_validator.validate(password, field=field)
        if not errors:
            return None
        return AuthResult.failure(
            AuthReason.PASSWORD_TOO_WEAK,
            self.password_validator.describe(),
            details=[{"field": e.field, "message": e.message, "code": e.code} for e in errors],
        )

    async def sign_up(
        self,
        first_name: str | None,
        email: str | None,
        password: str | None,
    ) -> AuthResult:
        """Register a new, unverified user and email them a confirmation link.

        Flow:
        1. Check required fields and email format
        2. Check password strength
        3. Hash password (off the event loop)
        4. Create user with an emailCheck token, rejecting taken emails
        5. Commit, then send the verification email
        6. Return a session token bound to the new user
        """
        details = []
        if not email or not email.strip():
            details.append(_missing("email", "No email was given"))
        if not password:
            details.append(_missing("password", "No password was given"))
        if not first_name or not first_name.strip():
            details.append(_missing("first_name", "First name is required"))
        if details:
            return AuthResult.failure(AuthReason.VALIDATION_ERROR, details=details)

        try:
            validate_email(email.strip(), check_deliverability=False)
        except EmailNotValidError as e:
            return AuthResult.failure(
                AuthReason.VALIDATION_ERROR,
                f"{email} is not a valid email address",
                details=[{"field": "email", "message": str(e), "code": "invalid_email"}],
            )

        weak = self._weak_password(password)
        if weak is not None:
            logger.info("Sign-up rejected: weak password", email=email)
            return weak

        email = normalize_email(email)
        password_hash = await hash_password_async(password)

        user = User(
            id=str(uuid.uuid4()),
            email=email,
            first_name=first_name.strip(),
            password_hash=password_hash,
            email_verified=False,
        )
        _, token = self.token_issuer.issue(user, TokenPurpose.EMAIL_CHECK)

        try:
            async with self._unit_of_work():
                if await self.user_repo.email_exists(email):
                    logger.info("Sign-up rejected: email taken", email=email)
                    return AuthResult.failure(AuthReason.EMAIL_TAKEN)
                user = await self.user_repo.create(user)
        except StoreError as e:
            # Lost a race with a concurrent sign-up for the same email
            if isinstance(e.__cause__, IntegrityError):
                return AuthResult.failure(AuthReason.EMAIL_TAKEN)
            raise

        logger.info("User signed up", user_id=user.id, email=user.email)

        sent = await self.notifier.send(
            NotificationTemplate.EMAIL_VERIFICATION, user.email, token, user.email
        )
        return AuthResult.success(
            "User successfully signed up",
            user=user,
            **self._session_for(user),
            notification_sent=sent,
        )

    async def log_in(self, email: str | None, password: str | None) -> AuthResult:
        """Authenticate a user by email and password.

        Unknown email and wrong password produce the same ``UNAUTHORIZED``
        result, and an unknown email is still verified against a dummy hash.
        A correct password on an unverified account is a soft
        ``EMAIL_NOT_CONFIRMED`` with no session.
        """
        details = []
        if not email or not email.strip():
            details.append(_missing("email", "No email was given"))
        if not password:
            details.append(_missing("password", "No password was given"))
        if details:
            return AuthResult.failure(AuthReason.VALIDATION_ERROR, details=details)

        async with self._unit_of_work():
            user = await self.user_repo.find_by_email(email)

            if user is None:
                await verify_password_async(password, DUMMY_PASSWORD_HASH)
                logger.info("Log-in failed: unknown email", email=email)
                return AuthResult.failure(AuthReason.UNAUTHORIZED)

            if not await verify_password_async(password, user.password_hash):
                logger.info("Log-in failed: invalid password", user_id=user.id)
                return AuthResult.failure(AuthReason.UNAUTHORIZED)

            if not user.email_verified:
                logger.info("Log-in deferred: email not confirmed", user_id=user.id)
                return AuthResult.failure(AuthReason.EMAIL_NOT_CONFIRMED, soft=True)

            await self.user_repo.record_login(user.id)

        logger.info("User logged in", user_id=user.id)
        return AuthResult.success(
            "Login successful",
            user=user,
            **self._session_for(user),
        )

    async def confirm_email(self, email: str | None, token: str | None) -> AuthResult:
        """Consume an emailCheck token and mark the email as verified."""
        presented = self._as_token(token)

        async with self._unit_of_work():
            validation = await self.token_validator.validate(
                TokenPurpose.EMAIL_CHECK, email, presented
            )
            if validation.reason is AuthReason.ALREADY_CONFIRMED:
                return AuthResult(
                    ok=True,
                    reason=AuthReason.ALREADY_CONFIRMED,
                    message="You have already confirmed your email",
                    soft=True,
                )
            if not validation.accepted:
                return AuthResult.failure(validation.reason)

            user = validation.user
            consumed = await self.user_repo.consume_token(
                user.id, TokenPurpose.EMAIL_CHECK, presented, email_verified=True
            )
            if not consumed:
                logger.info("Email confirmation lost race", user_id=user.id)
                return AuthResult.failure(AuthReason.LINK_ALREADY_USED)

        logger.info("Email confirmed", user_id=user.id)
        return AuthResult.success("Your email has been verified with success")

    async def resend_email_check(self, email: str | None) -> AuthResult:
        """Issue a fresh emailCheck token, replacing any outstanding one."""
        if not email or not email.strip():
            return AuthResult.failure(AuthReason.NO_EMAIL_GIVEN)

        async with self._unit_of_work():
            user = await self.user_repo.find_by_email(email)
            if user is None:
                return AuthResult.failure(AuthReason.EMAIL_NOT_FOUND)
            if user.email_verified:
                return AuthResult(
                    ok=True,
                    reason=AuthReason.ALREADY_CONFIRMED,
                    message="You have already confirmed your email",
                    soft=True,
                )
            record, token = self.token_issuer.issue(user, TokenPurpose.EMAIL_CHECK)
            await self.user_repo.save_token(user.id, TokenPurpose.EMAIL_CHECK, record)

        sent = await self.notifier.send(
            NotificationTemplate.EMAIL_VERIFICATION, user.email, token, user.email
        )
        return AuthResult.success(
            "A new confirmation email has been sent", notification_sent=sent
        )

    async def request_password_reset(self, email: str | None) -> AuthResult:
        """Issue a passwordChange token and email the reset link.

        Unknown and unconfirmed emails are reported distinctly.
        """
        if not email or not email.strip():
            return AuthResult.failure(AuthReason.NO_EMAIL_GIVEN)

        async with self._unit_of_work():
            user = await self.user_repo.find_by_email(email)
            if user is None:
                logger.info("Password reset refused: unknown email", email=email)
                return AuthResult.failure(AuthReason.EMAIL_NOT_FOUND)
            if not user.email_verified:
                logger.info("Password reset refused: email not confirmed", user_id=user.id)
                return AuthResult.failure(AuthReason.EMAIL_NOT_CONFIRMED)

            record, token = self.token_issuer.issue(user, TokenPurpose.PASSWORD_CHANGE)
            await self.user_repo.save_token(user.id, TokenPurpose.PASSWORD_CHANGE, record)

        logger.info("Password reset requested", user_id=user.id)

        sent = await self.notifier.send(
            NotificationTemplate.PASSWORD_RESET, user.email, token, user.email
        )
        return AuthResult.success(
            "An email has been sent with a link to change your password",
            notification_sent=sent,
        )

    async def check_password_reset_link(self, email: str | None, token: str | None) -> AuthResult:
        """Check a reset link without consuming it."""
        async with self._unit_of_work():
            validation = await self.token_validator.validate(
                TokenPurpose.PASSWORD_CHANGE, email, self._as_token(token)
            )
        if not validation.accepted:
            return AuthResult.failure(validation.reason)
        return AuthResult.success("You can now choose a new password")

    async def reset_password(
        self,
        email: str | None,
        token: str | None,
        new_password: str | None,
        new_password_confirmation: str | None,
    ) -> AuthResult:
        """Replace the password using a passwordChange token.

        The token is consumed only once the new password is present, matches
        its confirmation and passes the policy. Any earlier rejection leaves
        the token usable.
        """
        presented = self._as_token(token)

        async with self._unit_of_work():
            validation = await self.token_validator.validate(
                TokenPurpose.PASSWORD_CHANGE, email, presented
            )
            if not validation.accepted:
                return AuthResult.failure(validation.reason)

            if not new_password:
                return AuthResult.failure(AuthReason.NO_PASSWORD_PROVIDED)
            if new_password != new_password_confirmation:
                return AuthResult.failure(AuthReason.PASSWORD_MISMATCH)
            weak = self._weak_password(new_password, field="new_password")
            if weak is not None:
                return weak

            user = validation.user
            password_hash = await hash_password_async(new_password)
            consumed = await self.user_repo.consume_token(
                user.id, TokenPurpose.PASSWORD_CHANGE, presented, password_hash=password_hash
            )
            if not consumed:
                logger.info("Password reset lost race", user_id=user.id)
                return AuthResult.failure(AuthReason.LINK_ALREADY_USED)

        logger.info("Password reset", user_id=user.id)
        return AuthResult.success("Password reset successfully")
