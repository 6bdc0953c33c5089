"""Unit tests for the User entity."""

from datetime import datetime, timezone

import pytest

from latchkey.domain.entities.token import TokenPurpose, TokenRecord
from latchkey.domain.entities.user import User, normalize_email


def _user(**overrides) -> User:
    values = {
        "id": "user-1",
        "email": "ada@example.com",
        "first_name": "Ada",
        "password_hash": "$argon2id$...",
    }
    values.update(overrides)
    return User(**values)


def test_new_user_is_unverified_without_tokens():
    user = _user()

    assert user.email_verified is False
    assert user.token_for(TokenPurpose.EMAIL_CHECK) is None
    assert user.token_for(TokenPurpose.PASSWORD_CHANGE) is None


@pytest.mark.parametrize(
    "field,value",
    [("id", ""), ("email", ""), ("first_name", "   "), ("password_hash", "")],
)
def test_required_fields(field, value):
    with pytest.raises(ValueError):
        _user(**{field: value})


def test_set_token_targets_one_purpose():
    user = _user()
    record = TokenRecord(token_hash="h", created_at=datetime.now(timezone.utc))

    user.set_token(TokenPurpose.PASSWORD_CHANGE, record)

    assert user.password_change is record
    assert user.email_check is None


def test_normalize_email():
    assert normalize_email("  Ada.Lovelace@Example.COM ") == "ada.lovelace@example.com"
