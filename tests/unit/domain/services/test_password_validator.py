"""Unit tests for the password policy."""

import pytest

from latchkey.domain.services.password_validator import PasswordValidator

POLICY = PasswordValidator()


class TestDefaultPolicy:
    @pytest.mark.parametrize("password", ["Passw0rdOk", "Abcdefg1", "brandNewPassw0rd"])
    def test_strong_passwords_pass(self, password):
        assert POLICY.validate(password) == []

    @pytest.mark.parametrize(
        "password,code",
        [
            ("Abcde1", "password_too_short"),
            ("abcdefg1", "password_no_uppercase"),
            ("ABCDEFG1", "password_no_lowercase"),
            ("Abcdefgh", "password_no_digit"),
        ],
    )
    def test_each_rule_is_reported(self, password, code):
        errors = POLICY.validate(password)

        assert [e.code for e in errors] == [code]
        assert errors[0].field == "password"

    def test_all_violations_are_collected(self):
        errors = POLICY.validate("password")

        assert {e.code for e in errors} == {"password_no_uppercase", "password_no_digit"}

    def test_empty_password_fails_every_rule(self):
        codes = {e.code for e in POLICY.validate("")}

        assert codes == {
            "password_too_short",
            "password_no_uppercase",
            "password_no_lowercase",
            "password_no_digit",
        }

    def test_special_characters_not_required_by_default(self):
        assert POLICY.validate("Passw0rdOk") == []


def test_field_name_is_reported():
    errors = POLICY.validate("short", field="new_password")

    assert errors
    assert all(e.field == "new_password" for e in errors)


def test_custom_policy():
    validator = PasswordValidator(min_length=12, require_special=True)

    assert [e.code for e in validator.validate("Passw0rdOk")] == ["password_too_short", "password_no_special"]
    assert validator.validate("Passw0rdOk!!") == []


def test_describe_lists_active_rules():
    message = POLICY.describe()

    assert "not strong enough" in message
    assert "at least 8 characters" in message
    assert "1 uppercase" in message
    assert "1 lowercase" in message
    assert "1 number" in message
