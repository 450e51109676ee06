"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response

from portfolio_admin.core.config import Settings
from portfolio_admin.core.kv_store import KeyValueStore
from portfolio_admin.core.request_utils import get_client_ip
from portfolio_admin.middleware.admin_auth import ADMIN_COOKIE_NAME, AuthGate
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
from portfolio_admin.services.auth import (
    AuthService,
    CredentialsSaveError,
    CredentialsUnavailableError,
    InvalidCredentialsError,
    SessionStoreError,
)
from portfolio_admin.services.credentials import (
    DEFAULT_ADMIN_EMAIL,
    DEFAULT_ADMIN_PASSWORD,
    InitializationResult,
)
from portfolio_admin.services.input_validation import validate_email, validate_password

logger = logging.getLogger(__name__)

CREDENTIALS_UNAVAILABLE_HINT = (
    "Admin credentials are not available. Initialize them via /api/auth/init-admin "
    "and check that REDIS_URL points at a reachable Redis instance."
)
STORE_UNAVAILABLE_HINT = (
    "The key-value store is unavailable. Check that REDIS_URL points at a reachable "
    "Redis instance (or set STORE_BACKEND=memory for a single-instance setup)."
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_app_settings(request: Request) -> Settings:
    """Dependency to get the settings the app was built with."""
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    """Dependency to get auth service."""
    return request.app.state.auth_service


def get_auth_gate(request: Request) -> AuthGate:
    """Dependency to get the admin auth gate."""
    return request.app.state.auth_gate


def _error(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=error).model_dump())


def _set_session_cookie(response: Response, token: str, app_settings: Settings) -> None:
    response.set_cookie(
        ADMIN_COOKIE_NAME,
        token,
        max_age=app_settings.session_ttl_seconds,
        path="/",
        secure=app_settings.is_production,
        httponly=True,
        samesite="strict",
    )


def _clear_session_cookie(response: Response, app_settings: Settings) -> None:
    response.delete_cookie(
        ADMIN_COOKIE_NAME,
        path="/",
        secure=app_settings.is_production,
        httponly=True,
        samesite="strict",
    )


@router.get("/status", response_model=AuthStatusResponse)
async def get_auth_status(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthStatusResponse:
    """Check whether admin credentials have been initialized.

    Never reveals the stored email or password hash.
    This endpoint does not require authentication.
    """
    store: KeyValueStore | None = request.app.state.kv_store
    return AuthStatusResponse(
        initialized=await auth_service.credentials.exists(),
        store=store.name if store is not None else "unconfigured",
    )


@router.api_route(
    "/init-admin",
    methods=["GET", "POST"],
    response_model=InitAdminResponse,
    status_code=status.HTTP_201_CREATED,
)
async def init_admin(
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Create the default admin account if none exists.

    Idempotent: once credentials exist this is a no-op that returns 200
    without any secrets. The default password is returned only by the call
    that created the record, and must be changed right after first login.
    """
    outcome = await auth_service.initialize()

    if outcome is InitializationResult.FAILED:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, STORE_UNAVAILABLE_HINT)

    if outcome is InitializationResult.EXISTS:
        body = InitAdminResponse(created=False, message="Admin credentials already exist")
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=body.model_dump(by_alias=True, exclude_none=True),
        )

    body = InitAdminResponse(
        created=True,
        message="Admin credentials initialized successfully",
        default_email=DEFAULT_ADMIN_EMAIL,
        default_password=DEFAULT_ADMIN_PASSWORD,
        warning="Change these credentials immediately after first login!",
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@router.post("/login", response_model=MessageResponse)
async def login(
    body: LoginRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
    app_settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Authenticate and set the admin session cookie.

    Rate limited to LOGIN_MAX_ATTEMPTS failures per LOGIN_LOCKOUT_SECONDS
    per client address. Bad credentials always get the same generic 401.
    """
    client_ip = get_client_ip(
        request,
        trusted_proxies=app_settings.trusted_proxy_ips_list,
        trust_proxy_headers=app_settings.trust_proxy_headers,
    )

    decision = await auth_service.rate_limiter.check(client_ip)
    if not decision.allowed:
        logger.warning(
            f"Login rejected for locked-out client {client_ip}",
            extra={"event": "login_locked", "client_ip": client_ip},
        )
        return _error(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "Too many failed login attempts. Please try again in "
            f"{decision.remaining_minutes} minute(s).",
        )

    if not body.email or not body.password:
        return _error(status.HTTP_400_BAD_REQUEST, "Email and password are required")

    try:
        credential = await auth_service.authenticate(body.email, body.password)
        token = await auth_service.start_session(credential.email)
    except InvalidCredentialsError:
        await auth_service.rate_limiter.record_failure(client_ip)
        logger.warning(
            f"Failed admin login from {client_ip}",
            extra={"event": "login_failed", "client_ip": client_ip},
        )
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")
    except CredentialsUnavailableError:
        logger.error("Login attempted but admin credentials are unavailable")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, CREDENTIALS_UNAVAILABLE_HINT)
    except SessionStoreError:
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to create session. " + STORE_UNAVAILABLE_HINT,
        )

    await auth_service.rate_limiter.record_success(client_ip)
    logger.info(
        f"Admin logged in from {client_ip}",
        extra={"event": "login", "client_ip": client_ip, "identity": credential.email},
    )

    response = JSONResponse(content=MessageResponse(message="Login successful").model_dump())
    _set_session_cookie(response, token, app_settings)
    return response


@router.get("/verify", response_model=VerifyResponse)
async def verify(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
) -> VerifyResponse | JSONResponse:
    """Report whether the request carries a valid admin session."""
    result = await gate.authorize(request)
    if not result.authenticated or result.identity is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=VerifyResponse(success=False, authenticated=False).model_dump(exclude_none=True),
        )
    return VerifyResponse(
        success=True,
        authenticated=True,
        user=UserResponse(email=result.identity),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
    gate: AuthGate = Depends(get_auth_gate),
    app_settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Log out: revoke the session behind the cookie and clear the cookie.

    Idempotent; logging out without a (valid) cookie succeeds.
    """
    try:
        identity = await auth_service.end_session(gate.extract_token(request))
    except SessionStoreError:
        response = _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to end session")
    else:
        if identity:
            logger.info(f"Admin logged out: {identity}", extra={"event": "logout", "identity": identity})
        response = JSONResponse(content=MessageResponse(message="Logged out successfully").model_dump())

    _clear_session_cookie(response, app_settings)
    return response


@router.post("/update-credentials", response_model=MessageResponse)
async def update_credentials(
    body: UpdateCredentialsRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
    gate: AuthGate = Depends(get_auth_gate),
    app_settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Change the admin email and password.

    Requires a valid session and the current password. Revokes the current
    session on success; the admin must log in again with the new credentials.
    """
    auth = await gate.authorize(request)
    if not auth.authenticated or auth.identity is None:
        return auth.response or _error(status.HTTP_401_UNAUTHORIZED, "Not authenticated")

    if not body.email or not body.current_password or not body.new_password:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Email, current password, and new password are required",
        )

    if not isinstance(body.current_password, str):
        return _error(status.HTTP_400_BAD_REQUEST, "Current password must be a string")

    email_check = validate_email(body.email)
    if not email_check.valid or email_check.email is None:
        return _error(status.HTTP_400_BAD_REQUEST, email_check.error or "Invalid email format")

    password_check = validate_password(body.new_password)
    if not password_check.valid:
        return _error(status.HTTP_400_BAD_REQUEST, password_check.error or "Password is too weak")

    try:
        await auth_service.update_credentials(
            identity=auth.identity,
            email=email_check.email,
            current_password=body.current_password,
            new_password=body.new_password,
        )
    except InvalidCredentialsError:
        logger.warning(f"Credential update with wrong current password for {auth.identity}")
        return _error(status.HTTP_401_UNAUTHORIZED, "Current password is incorrect")
    except CredentialsUnavailableError:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Admin credentials not found")
    except CredentialsSaveError:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save credentials")

    response = JSONResponse(
        content=MessageResponse(
            message="Credentials updated successfully. Please log in again."
        ).model_dump()
    )
    _clear_session_cookie(response, app_settings)
    return response
