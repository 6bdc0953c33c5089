"""SQLAlchemy models for latchkey."""

from latchkey.infrastructure.persistence.models.user import UserModel

__all__ = ["UserModel"]
