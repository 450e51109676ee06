"""Pydantic schemas for authentication API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Request for login.

    Fields are optional and untyped so a missing or non-string value is
    answered with the API's own 400/401 instead of a schema error; a
    non-string value counts as a failed login.
    """

    email: Any = None
    password: Any = None


class UpdateCredentialsRequest(BaseModel):
    """Request to replace the admin email and password.

    Values are checked by the endpoint so errors keep the API's 400 shape.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: Any = None
    current_password: Any = Field(default=None, alias="currentPassword")
    new_password: Any = Field(default=None, alias="newPassword")


class MessageResponse(BaseModel):
    """Generic success response."""

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Generic failure response."""

    success: bool = False
    error: str


class UserResponse(BaseModel):
    """The authenticated administrator."""

    email: str


class VerifyResponse(BaseModel):
    """Response for session verification."""

    success: bool
    authenticated: bool
    user: UserResponse | None = None


class InitAdminResponse(BaseModel):
    """Response for admin initialization.

    The default password is only included when the record was created by
    this call.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    created: bool
    message: str
    default_email: str | None = Field(default=None, alias="defaultEmail")
    default_password: str | None = Field(default=None, alias="defaultPassword")
    warning: str | None = None


class AuthStatusResponse(BaseModel):
    """Response for auth status check."""

    success: bool = True
    initialized: bool | None = Field(
        description="True if admin credentials exist; null when the store is unreachable"
    )
    store: str = Field(description="Configured key-value store: redis, memory or unconfigured")
