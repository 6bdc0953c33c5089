"""Password strength policy.

A password passes only when it satisfies every active rule. All violations
are reported at once, each tagged with the request field it came from.
"""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class PasswordValidationError:
    """One violated rule.

    Attributes:
        field: Request field the password came from.
        message: Human-readable error message.
        code: Machine-readable error code.
    """

    field: str
    message: str
    code: str


@dataclass(frozen=True)
class _CharacterRule:
    code: str
    message: str
    summary: str
    pattern: re.Pattern[str]


_CHARACTER_RULES: dict[str, _CharacterRule] = {
    "uppercase": _CharacterRule(
        "password_no_uppercase",
        "Password must contain at least one uppercase letter",
        "1 uppercase",
        re.compile(r"[A-Z]"),
    ),
    "lowercase": _CharacterRule(
        "password_no_lowercase",
        "Password must contain at least one lowercase letter",
        "1 lowercase",
        re.compile(r"[a-z]"),
    ),
    "digit": _CharacterRule(
        "password_no_digit",
        "Password must contain at least one digit",
        "1 number",
        re.compile(r"\d"),
    ),
    "special": _CharacterRule(
        "password_no_special",
        "Password must contain at least one special character",
        "1 special character",
        re.compile(r"[^A-Za-z0-9\s]"),
    ),
}


class PasswordValidator:
    """Checks passwords against a length and character-class policy.

    The default policy asks for 8 characters with at least one uppercase
    letter, one lowercase letter and one digit.
    """

    def __init__(
        self,
        min_length: int = 8,
        require_uppercase: bool = True,
        require_lowercase: bool = True,
        require_digit: bool = True,
        require_special: bool = False,
    ) -> None:
        self.min_length = min_length
        enabled = {
            "uppercase": require_uppercase,
            "lowercase": require_lowercase,
            "digit": require_digit,
            "special": require_special,
        }
        self.rules = [rule for name, rule in _CHARACTER_RULES.items() if enabled[name]]

    def validate(self, password: str, field: str = "password") -> list[PasswordValidationError]:
        """Return every rule ``password`` violates, in policy order.

        An empty list means the password is acceptable.
        """
        errors = []
        if len(password) < self.min_length:
            errors.append(
                PasswordValidationError(
                    field=field,
                    message=f"Password must be at least {self.min_length} characters",
                    code="password_too_short",
                )
            )
        errors.extend(
            PasswordValidationError(field=field, message=rule.message, code=rule.code)
            for rule in self.rules
            if not rule.pattern.search(password)
        )
        return errors

    def describe(self) -> str:
        """One-sentence statement of the policy, used as the rejection message."""
        requirements = [f"at least {self.min_length} characters"]
        requirements.extend(rule.summary for rule in self.rules)
        return "Your password is not strong enough: it needs " + ", ".join(requirements)
