"""The ``users`` table.

Each token purpose is stored as three columns on the user row
(``<purpose>_token_hash``, ``<purpose>_created_at``, ``<purpose>_used``).
Issuing or consuming a token together with the user change it unlocks is
therefore one single-row UPDATE.
"""

from datetime import datetime

from sqlalchemy import String, func
from sqlalchemy.orm import Mapped, mapped_column

from latchkey.infrastructure.persistence.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(255))
    password_hash: Mapped[str] = mapped_column(String(255))
    email_verified: Mapped[bool] = mapped_column(default=False)

    # SHA-256 hex digests; raw tokens are never stored
    email_check_token_hash: Mapped[str | None] = mapped_column(String(64))
    email_check_created_at: Mapped[datetime | None]
    email_check_used: Mapped[bool] = mapped_column(default=False)

    password_change_token_hash: Mapped[str | None] = mapped_column(String(64))
    password_change_created_at: Mapped[datetime | None]
    password_change_used: Mapped[bool] = mapped_column(default=False)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())
    last_login: Mapped[datetime | None]

    def __repr__(self) -> str:
        return f"UserModel(id={self.id!r}, email={self.email!r})"
