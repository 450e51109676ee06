"""Signed admin tokens (JWT, HMAC-SHA256 by default)."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import PyJWTError

logger = logging.getLogger(__name__)

ADMIN_TOKEN_TYPE = "admin"
DEFAULT_TOKEN_TTL = timedelta(days=7)


class TokenError(Exception):
    """JWT token error."""

    pass


class TokenExpiredError(TokenError):
    """JWT token has expired."""

    pass


class InvalidTokenError(TokenError):
    """JWT token is invalid."""

    pass


@dataclass(frozen=True)
class TokenPayload:
    """Verified contents of an admin token."""

    identity: str
    type: str
    expires_at: datetime


class TokenIssuer:
    """Issues and verifies admin tokens with a process-wide secret.

    Rotating the secret invalidates every outstanding token.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttl: timedelta = DEFAULT_TOKEN_TTL,
    ) -> None:
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, identity: str) -> str:
        """Create a signed token for identity, valid for the configured TTL."""
        now = datetime.now(UTC)
        payload = {
            "sub": identity,
            "type": ADMIN_TOKEN_TYPE,
            "iat": now,
            "exp": now + self.ttl,
            # Makes tokens from logins within the same second distinct
            "jti": secrets.token_hex(16),
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(token)

    def decode(self, token: str) -> dict[str, Any]:
        """Decode and validate a token, raising TokenError subclasses."""
        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

    def verify(self, token: str) -> TokenPayload | None:
        """Return the token payload, or None if it is forged, expired or malformed."""
        try:
            payload = self.decode(token)
        except TokenError as e:
            logger.debug(f"Token rejected: {e}")
            return None

        identity = payload.get("sub")
        token_type = payload.get("type")
        if not isinstance(identity, str) or not identity:
            logger.debug("Token rejected: missing subject")
            return None
        if token_type != ADMIN_TOKEN_TYPE:
            logger.debug(f"Token rejected: unexpected type {token_type!r}")
            return None

        return TokenPayload(
            identity=identity,
            type=token_type,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
        )
