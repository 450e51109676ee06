"""Middleware module for the portfolio admin backend."""

from portfolio_admin.middleware.admin_auth import AdminAuthMiddleware, AuthGate
from portfolio_admin.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "AdminAuthMiddleware",
    "AuthGate",
    "SecurityHeadersMiddleware",
]
