# Portfolio Admin Pydantic Schemas
from portfolio_admin.schemas.auth import (
    AuthStatusResponse,
    ErrorResponse,
    InitAdminResponse,
    LoginRequest,
    MessageResponse,
    UpdateCredentialsRequest,
    UserResponse,
    VerifyResponse,
)

__all__ = [
    "AuthStatusResponse",
    "ErrorResponse",
    "InitAdminResponse",
    "LoginRequest",
    "MessageResponse",
    "UpdateCredentialsRequest",
    "UserResponse",
    "VerifyResponse",
]
