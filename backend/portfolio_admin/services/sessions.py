"""Server-side session registry.

Holds the single currently-valid token per identity. A signed token is only
accepted while it is byte-equal to the stored one, so a new login or a
logout revokes every other outstanding token immediately.
"""

import hmac
import logging

from portfolio_admin.core.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "portfolio:admin:session:"
DEFAULT_SESSION_TTL_SECONDS = 7 * 24 * 60 * 60


def session_key(identity: str) -> str:
    return f"{SESSION_KEY_PREFIX}{identity.strip().lower()}"


class SessionRegistry:
    """One session slot per identity, last login wins."""

    def __init__(
        self,
        store: KeyValueStore | None,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
    ) -> None:
        self._store = store
        self.ttl_seconds = ttl_seconds

    async def create(self, token: str, identity: str) -> bool:
        """Record token as the only valid session for identity."""
        if self._store is None:
            return False
        result = await self._store.set(session_key(identity), token, ttl_seconds=self.ttl_seconds)
        if not result.ok:
            logger.error(f"Could not record session for {identity}: {result.error}")
            return False
        return True

    async def verify(self, token: str, identity: str) -> bool:
        """Check that token is the session currently recorded for identity."""
        if self._store is None:
            return False
        result = await self._store.get(session_key(identity))
        if not result.ok:
            if result.unavailable:
                logger.warning(f"Session lookup failed for {identity}: {result.error}")
            return False
        stored = result.value
        if not isinstance(stored, str):
            return False
        return hmac.compare_digest(stored.encode("utf-8"), token.encode("utf-8"))

    async def delete(self, identity: str) -> bool:
        """Remove the session for identity. Absent sessions count as removed."""
        if self._store is None:
            return False
        result = await self._store.delete(session_key(identity))
        if not result.ok:
            logger.error(f"Could not delete session for {identity}: {result.error}")
            return False
        return True
