"""Persistence of ``User`` entities.

Rows are translated to and from domain entities here; nothing above this
module sees a ``UserModel``. The repository flushes but never commits, so
every write joins the caller's transaction.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import ColumnElement, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from latchkey.domain.entities.token import OpaqueToken, TokenPurpose, TokenRecord
from latchkey.domain.entities.user import User, normalize_email
from latchkey.infrastructure.persistence.models import UserModel


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def token_row_values(purpose: TokenPurpose, record: TokenRecord | None) -> dict[str, Any]:
    """Column values storing ``record`` (or clearing the slot when None)."""
    prefix = purpose.field_name
    return {
        f"{prefix}_token_hash": record.token_hash if record else None,
        f"{prefix}_created_at": record.created_at if record else None,
        f"{prefix}_used": record.used if record else False,
    }


def token_from_row(model: UserModel, purpose: TokenPurpose) -> TokenRecord | None:
    prefix = purpose.field_name
    token_hash = getattr(model, f"{prefix}_token_hash")
    created_at = getattr(model, f"{prefix}_created_at")
    if token_hash is None or created_at is None:
        return None
    return TokenRecord(
        token_hash=token_hash,
        created_at=_as_utc(created_at),
        used=getattr(model, f"{prefix}_used"),
    )


def user_from_row(model: UserModel) -> User:
    return User(
        id=model.id,
        email=model.email,
        first_name=model.first_name,
        password_hash=model.password_hash,
        email_verified=model.email_verified,
        email_check=token_from_row(model, TokenPurpose.EMAIL_CHECK),
        password_change=token_from_row(model, TokenPurpose.PASSWORD_CHANGE),
        created_at=_as_utc(model.created_at),
        last_login=_as_utc(model.last_login),
    )


def row_from_user(user: User) -> UserModel:
    values: dict[str, Any] = {}
    for purpose in TokenPurpose:
        values.update(token_row_values(purpose, user.token_for(purpose)))
    return UserModel(
        id=user.id,
        email=normalize_email(user.email),
        first_name=user.first_name,
        password_hash=user.password_hash,
        email_verified=user.email_verified,
        created_at=user.created_at,
        last_login=user.last_login,
        **values,
    )


class UserRepository:
    """Repository for users and their embedded verification and reset tokens.

    Every method runs on the session it was built with and flushes at most;
    committing or rolling back is the caller's job.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _load(self, condition: ColumnElement[bool]) -> User | None:
        # populate_existing: conditional UPDATEs bypass the identity map
        statement = select(UserModel).where(condition).execution_options(populate_existing=True)
        model = (await self.session.execute(statement)).scalar_one_or_none()
        return user_from_row(model) if model is not None else None

    async def create(self, user: User) -> User:
        """Insert ``user`` with any token sub-records it already carries.

        Args:
            user: Entity to insert. Its email is stored normalised.

        Returns:
            The user as persisted.

        Raises:
            IntegrityError: If the email is already registered. Raised at
                flush time, so the caller sees it before committing.
        """
        model = row_from_user(user)
        self.session.add(model)
        await self.session.flush()
        return user_from_row(model)

    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by ID.

        Args:
            user_id: User ID (UUID string).

        Returns:
            User if found, None otherwise.
        """
        return await self._load(UserModel.id == user_id)

    async def find_by_email(self, email: str) -> User | None:
        """Look a user up by email; the lookup ignores case and surrounding spaces.

        Args:
            email: Address as the client typed it.

        Returns:
            User if found, None otherwise.
        """
        return await self._load(UserModel.email == normalize_email(email))

    async def email_exists(self, email: str) -> bool:
        """Check whether ``email`` is registered, ignoring case."""
        statement = select(UserModel.id).where(UserModel.email == normalize_email(email)).limit(1)
        return (await self.session.execute(statement)).first() is not None

    async def save_token(self, user_id: str, purpose: TokenPurpose, record: TokenRecord) -> bool:
        """Replace the ``purpose`` token of a user, discarding the previous one.

        Args:
            user_id: Owner of the token.
            purpose: Which token slot to overwrite.
            record: New record, holding only the token digest.

        Returns:
            False if no such user exists.
        """
        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(token_row_values(purpose, record))
        )
        return result.rowcount > 0

    async def consume_token(
        self,
        user_id: str,
        purpose: TokenPurpose,
        token: OpaqueToken,
        **values: Any,
    ) -> bool:
        """Mark a token used and apply ``values`` in one conditional write.

        The row only matches while the stored token is unused and equal to
        ``token``. Of two concurrent consumers, exactly one sees a match.

        Args:
            user_id: Owner of the token.
            purpose: Which token slot to consume.
            token: The raw token the client presented.
            **values: Column values unlocked by the token, e.g.
                ``email_verified=True`` or ``password_hash=...``.

        Returns:
            True if this call consumed the token.
        """
        prefix = purpose.field_name
        result = await self.session.execute(
            update(UserModel)
            .where(
                UserModel.id == user_id,
                getattr(UserModel, f"{prefix}_used").is_(False),
                getattr(UserModel, f"{prefix}_token_hash") == token.digest(),
            )
            .values({f"{prefix}_used": True, **values})
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def update(self, user_id: str, **values: Any) -> User | None:
        """Set column values on a user and return the refreshed entity.

        Args:
            user_id: User to patch.
            **values: Column values, e.g. ``first_name="Ada"``.

        Returns:
            The updated user, or None if no such user exists.
        """
        await self.session.execute(update(UserModel).where(UserModel.id == user_id).values(**values))
        return await self.get_by_id(user_id)

    async def record_login(self, user_id: str) -> None:
        """Stamp the user's ``last_login`` with the current UTC time."""
        await self.update(user_id, last_login=datetime.now(timezone.utc))
