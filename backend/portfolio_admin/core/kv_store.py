"""Key-value store backends for credentials, sessions and login counters.

Two implementations share one async interface:

- RedisStore: durable, shared between instances (redis.asyncio client)
- MemoryStore: process-local dict with per-key expiry, for single-instance
  deployments, local development and tests

Backend failures never propagate as exceptions. Every operation returns a
StoreResult whose status tag tells the caller whether the key was found,
missing, or whether the store could not be reached.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from portfolio_admin.core.config import Settings

logger = logging.getLogger(__name__)


class StoreStatus(str, Enum):
    """Outcome tag of a store operation."""

    OK = "ok"
    MISSING = "missing"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class StoreResult:
    """Result of a single store operation."""

    status: StoreStatus
    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is StoreStatus.OK

    @property
    def unavailable(self) -> bool:
        return self.status is StoreStatus.UNAVAILABLE

    @classmethod
    def found(cls, value: Any = None) -> "StoreResult":
        return cls(StoreStatus.OK, value)

    @classmethod
    def missing(cls) -> "StoreResult":
        return cls(StoreStatus.MISSING)

    @classmethod
    def failed(cls, error: str) -> "StoreResult":
        return cls(StoreStatus.UNAVAILABLE, error=error)


class KeyValueStore(ABC):
    """Async key-value store holding JSON-serializable values."""

    #: Short backend name reported by status endpoints
    name: str = "store"

    @abstractmethod
    async def get(self, key: str) -> StoreResult:
        """Fetch and decode the value under key."""

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
        only_if_absent: bool = False,
    ) -> StoreResult:
        """Store value under key.

        The result value is True when the write happened and False when
        only_if_absent prevented it because the key already existed.
        A ttl_seconds of None means no expiry; zero or negative values raise
        ValueError, as Redis rejects them.
        """

    @abstractmethod
    async def delete(self, key: str) -> StoreResult:
        """Remove key. Removing an absent key is not an error."""

    @abstractmethod
    async def ping(self) -> StoreResult:
        """Check that the backend answers."""

    async def close(self) -> None:
        """Release backend resources."""


def _check_ttl(ttl_seconds: int | None) -> None:
    if ttl_seconds is not None and ttl_seconds <= 0:
        raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")


class RedisStore(KeyValueStore):
    """Durable store backed by a constructed redis.asyncio client."""

    name = "redis"

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisStore":
        """Create a store for a redis:// URL (client connects lazily)."""
        return cls(redis.Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> StoreResult:
        try:
            raw = await self._client.get(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Redis GET failed for {key}: {type(e).__name__}: {e}")
            return StoreResult.failed(str(e))

        if raw is None:
            return StoreResult.missing()

        try:
            return StoreResult.found(json.loads(raw))
        except (TypeError, ValueError) as e:
            logger.error(f"Undecodable value stored under {key}: {e}")
            return StoreResult.failed(f"undecodable value: {e}")

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
        only_if_absent: bool = False,
    ) -> StoreResult:
        _check_ttl(ttl_seconds)
        try:
            written = await self._client.set(
                key,
                json.dumps(value),
                ex=ttl_seconds,
                nx=only_if_absent,
            )
        except (RedisError, OSError) as e:
            logger.warning(f"Redis SET failed for {key}: {type(e).__name__}: {e}")
            return StoreResult.failed(str(e))
        # SET NX answers None when the key already exists
        return StoreResult.found(bool(written))

    async def delete(self, key: str) -> StoreResult:
        try:
            await self._client.delete(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Redis DEL failed for {key}: {type(e).__name__}: {e}")
            return StoreResult.failed(str(e))
        return StoreResult.found(True)

    async def ping(self) -> StoreResult:
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            logger.debug(f"Redis ping failed: {e}")
            return StoreResult.failed(str(e))
        return StoreResult.found(True)

    async def close(self) -> None:
        await self._client.aclose()


class MemoryStore(KeyValueStore):
    """Process-local store with per-key expiry.

    Values are kept JSON-encoded so callers get independent copies, the
    same as with Redis. Expired keys are dropped lazily on access.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    def _live_entry(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return raw

    async def get(self, key: str) -> StoreResult:
        raw = self._live_entry(key)
        if raw is None:
            return StoreResult.missing()
        return StoreResult.found(json.loads(raw))

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
        only_if_absent: bool = False,
    ) -> StoreResult:
        _check_ttl(ttl_seconds)
        if only_if_absent and self._live_entry(key) is not None:
            return StoreResult.found(False)
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        self._data[key] = (json.dumps(value), expires_at)
        return StoreResult.found(True)

    async def delete(self, key: str) -> StoreResult:
        self._data.pop(key, None)
        return StoreResult.found(True)

    async def ping(self) -> StoreResult:
        return StoreResult.found(True)

    def ttl(self, key: str) -> float | None:
        """Seconds until key expires; None when absent or persistent."""
        if self._live_entry(key) is None:
            return None
        expires_at = self._data[key][1]
        if expires_at is None:
            return None
        return expires_at - self._clock()

    def clear(self) -> None:
        self._data.clear()


def build_kv_store(settings: Settings) -> KeyValueStore | None:
    """Create the configured durable store.

    Returns None when STORE_BACKEND=redis and no REDIS_URL is set; callers
    then treat credentials and sessions as unavailable.
    """
    if settings.store_backend == "memory":
        logger.warning("Using in-memory key-value store: data is lost on restart")
        return MemoryStore()
    if not settings.redis_url:
        logger.error("No REDIS_URL configured: admin credentials and sessions are unavailable")
        return None
    return RedisStore.from_url(settings.redis_url)
