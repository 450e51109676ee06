# Portfolio Admin Services
from portfolio_admin.services.auth import AuthService, build_auth_service
from portfolio_admin.services.credentials import AdminCredential, CredentialStore
from portfolio_admin.services.rate_limit import LoginRateLimiter
from portfolio_admin.services.sessions import SessionRegistry
from portfolio_admin.services.tokens import TokenIssuer

__all__ = [
    "AdminCredential",
    "AuthService",
    "CredentialStore",
    "LoginRateLimiter",
    "SessionRegistry",
    "TokenIssuer",
    "build_auth_service",
]
