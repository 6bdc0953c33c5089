"""Repositories for latchkey persistence."""

from latchkey.infrastructure.persistence.repositories.user_repository import UserRepository

__all__ = ["UserRepository"]
