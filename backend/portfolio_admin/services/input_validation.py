"""Input validation for login and credential updates."""

import re
from dataclasses import dataclass

MAX_EMAIL_LENGTH = 254
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
FORBIDDEN_EMAIL_CHARS = re.compile(r"[<>\"']")
SPECIAL_CHARS = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


@dataclass(frozen=True)
class EmailValidation:
    valid: bool
    email: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class PasswordValidation:
    valid: bool
    error: str | None = None


def validate_email(value: object) -> EmailValidation:
    """Validate an email address and return it trimmed and lowercased."""
    if not isinstance(value, str):
        return EmailValidation(valid=False, error="Email must be a string")

    email = value.strip().lower()

    if not email:
        return EmailValidation(valid=False, error="Email is required")
    if len(email) > MAX_EMAIL_LENGTH:
        return EmailValidation(valid=False, error="Email is too long")
    if not EMAIL_PATTERN.match(email):
        return EmailValidation(valid=False, error="Invalid email format")
    if FORBIDDEN_EMAIL_CHARS.search(email):
        return EmailValidation(valid=False, error="Email contains invalid characters")

    return EmailValidation(valid=True, email=email)


def validate_password(value: object) -> PasswordValidation:
    """Check password strength; the error names the first rule that fails."""
    if not isinstance(value, str):
        return PasswordValidation(valid=False, error="Password must be a string")

    rules = [
        (
            len(value) >= MIN_PASSWORD_LENGTH,
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
        ),
        (len(value) <= MAX_PASSWORD_LENGTH, "Password is too long"),
        (re.search(r"[A-Z]", value) is not None, "Password must contain at least one uppercase letter"),
        (re.search(r"[a-z]", value) is not None, "Password must contain at least one lowercase letter"),
        (re.search(r"[0-9]", value) is not None, "Password must contain at least one number"),
        (SPECIAL_CHARS.search(value) is not None, "Password must contain at least one special character"),
    ]
    for passed, error in rules:
        if not passed:
            return PasswordValidation(valid=False, error=error)

    return PasswordValidation(valid=True)
