"""Tests for email and password validation."""

import pytest

from portfolio_admin.services.input_validation import (
    MAX_EMAIL_LENGTH,
    MAX_PASSWORD_LENGTH,
    validate_email,
    validate_password,
)


class TestValidateEmail:
    def test_valid_email_is_normalized(self):
        result = validate_email("  Owner@Example.COM ")
        assert result.valid is True
        assert result.email == "owner@example.com"
        assert result.error is None

    @pytest.mark.parametrize(
        "value,error",
        [
            (None, "Email must be a string"),
            (42, "Email must be a string"),
            ("   ", "Email is required"),
            ("no-at-sign.example.com", "Invalid email format"),
            ("user@nodot", "Invalid email format"),
            ("two words@example.com", "Invalid email format"),
            ("o'brien@example.com", "Email contains invalid characters"),
            ("<script>@example.com", "Email contains invalid characters"),
        ],
    )
    def test_invalid_email(self, value, error):
        result = validate_email(value)
        assert result.valid is False
        assert result.email is None
        assert result.error == error

    def test_too_long(self):
        local = "a" * (MAX_EMAIL_LENGTH - len("@example.com") + 1)
        result = validate_email(f"{local}@example.com")
        assert result.valid is False
        assert result.error == "Email is too long"


class TestValidatePassword:
    def test_strong_password(self):
        assert validate_password("Str0ng-Passw0rd!").valid is True

    @pytest.mark.parametrize(
        "value,error",
        [
            (None, "Password must be a string"),
            ("Sh0rt!", "Password must be at least 8 characters long"),
            ("lowercase-only-1", "Password must contain at least one uppercase letter"),
            ("UPPERCASE-ONLY-1", "Password must contain at least one lowercase letter"),
            ("No-Digits-Here", "Password must contain at least one number"),
            ("NoSpecial123", "Password must contain at least one special character"),
        ],
    )
    def test_weak_password(self, value, error):
        result = validate_password(value)
        assert result.valid is False
        assert result.error == error

    def test_too_long(self):
        result = validate_password("Aa1!" * (MAX_PASSWORD_LENGTH // 4 + 1))
        assert result.valid is False
        assert result.error == "Password is too long"

    def test_first_failing_rule_is_reported(self):
        assert validate_password("abc").error == "Password must be at least 8 characters long"
