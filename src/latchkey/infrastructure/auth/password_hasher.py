"""Argon2id password hashing.

The plain functions block for tens of milliseconds per call. Request
handlers use the ``*_async`` variants, which run the same work in a thread.
"""

import asyncio
import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_argon2 = PasswordHasher()

# Log-in verifies against this when the email is unknown, so both paths cost one hash
DUMMY_PASSWORD_HASH = _argon2.hash(secrets.token_urlsafe(32))


def hash_password(password: str) -> str:
    """Return an encoded Argon2id hash with a fresh random salt.

    Args:
        password: Plain text password.

    Returns:
        Encoded hash carrying its own parameters and salt.

    >>> hash_password("Passw0rdOk").startswith("$argon2id$")
    True
    """
    return _argon2.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored hash.

    A hash that cannot be parsed counts as a mismatch rather than an error.

    Args:
        password: Plain text password to check.
        password_hash: Encoded hash as stored on the user.

    Returns:
        True if the password matches.
    """
    try:
        return _argon2.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


async def hash_password_async(password: str) -> str:
    """Hash ``password`` in a worker thread; see ``hash_password``."""
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, password_hash: str) -> bool:
    """Verify ``password`` in a worker thread; see ``verify_password``."""
    return await asyncio.to_thread(verify_password, password, password_hash)
