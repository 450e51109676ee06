"""Authentication service composing credentials, tokens, sessions and throttling."""

import logging
from datetime import timedelta
from functools import lru_cache

from portfolio_admin.core.config import Settings
from portfolio_admin.core.kv_store import KeyValueStore, MemoryStore
from portfolio_admin.services.credentials import (
    AdminCredential,
    CredentialStore,
    InitializationResult,
    normalize_email,
)
from portfolio_admin.services.input_validation import MAX_PASSWORD_LENGTH, validate_email
from portfolio_admin.services.passwords import hash_password, needs_rehash, verify_password
from portfolio_admin.services.rate_limit import LoginRateLimiter
from portfolio_admin.services.sessions import SessionRegistry
from portfolio_admin.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base authentication error."""

    pass


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""

    pass


class CredentialsUnavailableError(AuthError):
    """The credential record is missing or the store cannot be reached."""

    pass


class CredentialsSaveError(AuthError):
    """The credential record could not be written."""

    pass


class SessionStoreError(AuthError):
    """A session could not be recorded or removed."""

    pass


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("dummy-password-for-timing")


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        credentials: CredentialStore,
        sessions: SessionRegistry,
        tokens: TokenIssuer,
        rate_limiter: LoginRateLimiter,
    ) -> None:
        self.credentials = credentials
        self.sessions = sessions
        self.tokens = tokens
        self.rate_limiter = rate_limiter

    async def authenticate(self, email: object, password: object) -> AdminCredential:
        """Check an email/password pair against the stored credential.

        Values come straight from the request body, so either may be any
        JSON type. Raises InvalidCredentialsError for a malformed email, an
        unknown email and a wrong password alike, to prevent user enumeration.
        A bcrypt hash left by the earlier deployment is upgraded to Argon2id
        once the password verifies.
        """
        email_check = validate_email(email)
        if (
            not email_check.valid
            or not isinstance(password, str)
            or len(password) > MAX_PASSWORD_LENGTH
        ):
            raise InvalidCredentialsError("Invalid credentials")

        credential = await self.credentials.get()
        if credential is None:
            raise CredentialsUnavailableError("Admin credentials are not available")

        if email_check.email != normalize_email(credential.email):
            # Perform a dummy verification to keep timing uniform
            verify_password(password, _dummy_hash())
            raise InvalidCredentialsError("Invalid credentials")

        if not verify_password(password, credential.password_hash):
            raise InvalidCredentialsError("Invalid credentials")

        if needs_rehash(credential.password_hash):
            await self._upgrade_hash(credential, password)

        return credential

    async def _upgrade_hash(self, credential: AdminCredential, password: str) -> None:
        if await self.credentials.save(credential.email, hash_password(password)):
            logger.info(f"Upgraded password hash for {credential.email} to Argon2id")
        else:
            logger.warning(f"Could not upgrade password hash for {credential.email}")

    async def start_session(self, identity: str) -> str:
        """Issue a token and make it the only valid session for identity."""
        identity = normalize_email(identity)
        token = self.tokens.issue(identity)
        if not await self.sessions.create(token, identity):
            raise SessionStoreError("Failed to create session")
        return token

    async def end_session(self, token: str | None) -> str | None:
        """Revoke the session a token belongs to.

        Returns the identity whose session was removed, or None when the
        token is absent or does not verify (nothing to revoke).
        """
        if not token:
            return None
        payload = self.tokens.verify(token)
        if payload is None:
            return None
        if not await self.sessions.delete(payload.identity):
            raise SessionStoreError("Failed to delete session")
        return payload.identity

    async def update_credentials(
        self,
        identity: str,
        email: str,
        current_password: str,
        new_password: str,
    ) -> None:
        """Replace the credential record and revoke the caller's session.

        The email and new password must already be validated.
        """
        credential = await self.credentials.get()
        if credential is None:
            raise CredentialsUnavailableError("Admin credentials not found")

        if not verify_password(current_password, credential.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        if not await self.credentials.save(email, hash_password(new_password)):
            raise CredentialsSaveError("Failed to save credentials")

        if not await self.sessions.delete(identity):
            logger.warning(f"Credentials changed but session for {identity} was not revoked")

        logger.info(f"Admin credentials updated (identity {identity} -> {normalize_email(email)})")

    async def initialize(self) -> InitializationResult:
        return await self.credentials.initialize_if_absent()


def build_auth_service(settings: Settings, store: KeyValueStore | None) -> AuthService:
    """Wire the auth components for the configured store.

    Without a durable store, credentials and sessions are unavailable and
    login throttling keeps its counters in process memory.
    """
    if store is None:
        logger.warning("Login rate limiting uses process-local counters (no durable store)")
        limiter_store: KeyValueStore = MemoryStore()
    else:
        limiter_store = store

    return AuthService(
        credentials=CredentialStore(store),
        sessions=SessionRegistry(store, ttl_seconds=settings.session_ttl_seconds),
        tokens=TokenIssuer(
            settings.effective_jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            ttl=timedelta(days=settings.session_ttl_days),
        ),
        rate_limiter=LoginRateLimiter(
            limiter_store,
            max_attempts=settings.login_max_attempts,
            lockout_seconds=settings.login_lockout_seconds,
        ),
    )
