"""Admin authentication gate and middleware using cookie-borne JWTs.

A request is authorized only if all three checks pass:

1. the admin-token cookie is present ("Not authenticated")
2. the token's signature and expiry verify ("Invalid token")
3. the token is the session currently recorded for its identity ("Session expired")

All three rejections are 401; the distinct messages tell a client whether it
never logged in, holds a forged or expired token, or was superseded by a
newer login or a logout.
"""

import logging
from dataclasses import dataclass

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from portfolio_admin.services.sessions import SessionRegistry
from portfolio_admin.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)

ADMIN_COOKIE_NAME = "admin-token"

# Paths under /api that authenticate themselves (exact or segment-boundary match)
EXCLUDED_PATHS = [
    "/api/auth",
]

PROTECTED_PREFIX = "/api"
MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def _unauthorized(error: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"success": False, "error": error},
    )


@dataclass
class AuthorizationResult:
    """Outcome of AuthGate.authorize; response is set when rejected."""

    authenticated: bool
    identity: str | None = None
    response: JSONResponse | None = None


class AuthGate:
    """Authorizes requests from the admin-token cookie."""

    def __init__(
        self,
        tokens: TokenIssuer,
        sessions: SessionRegistry,
        cookie_name: str = ADMIN_COOKIE_NAME,
    ) -> None:
        self.tokens = tokens
        self.sessions = sessions
        self.cookie_name = cookie_name

    def extract_token(self, request: Request) -> str | None:
        return request.cookies.get(self.cookie_name) or None

    async def authorize(self, request: Request) -> AuthorizationResult:
        token = self.extract_token(request)
        if not token:
            return AuthorizationResult(False, response=_unauthorized("Not authenticated"))

        payload = self.tokens.verify(token)
        if payload is None:
            logger.warning(f"Invalid admin token for: {request.method} {request.url.path}")
            return AuthorizationResult(False, response=_unauthorized("Invalid token"))

        if not await self.sessions.verify(token, payload.identity):
            logger.info(f"Superseded or revoked session used for: {request.method} {request.url.path}")
            return AuthorizationResult(False, response=_unauthorized("Session expired"))

        return AuthorizationResult(True, identity=payload.identity)


def is_excluded_path(path: str) -> bool:
    return any(path == excluded or path.startswith(excluded + "/") for excluded in EXCLUDED_PATHS)


def requires_admin(method: str, path: str) -> bool:
    """Whether a request must pass the gate: mutating calls under /api/."""
    if method not in MUTATING_METHODS:
        return False
    if not (path == PROTECTED_PREFIX or path.startswith(PROTECTED_PREFIX + "/")):
        return False
    return not is_excluded_path(path)


class AdminAuthMiddleware(BaseHTTPMiddleware):
    """Middleware guarding content-editing API writes.

    Every POST/PUT/PATCH/DELETE under /api/ must carry a valid admin session
    cookie. Reads stay public so the site can render its content; the auth
    endpoints under /api/auth handle their own authentication.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # Skip auth for CORS preflight requests (OPTIONS)
        if request.method == "OPTIONS":
            return await call_next(request)

        if not requires_admin(request.method, request.url.path):
            return await call_next(request)

        gate: AuthGate = request.app.state.auth_gate
        result = await gate.authorize(request)
        if not result.authenticated:
            return result.response or _unauthorized("Not authenticated")

        request.state.admin_identity = result.identity
        return await call_next(request)
