"""Login rate limiting per client address.

Each address moves through Clean -> Counting(n) -> Locked(reset_time) ->
Clean. The lockout window starts at the first failure and does not slide:
later failures raise the count but keep the original reset time.

The limiter fails open. When its store cannot be reached, logins are
allowed and failures are not counted.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from portfolio_admin.core.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

RATE_LIMIT_KEY_PREFIX = "rate-limit:login:"
MAX_ATTEMPTS = 5
LOCKOUT_SECONDS = 15 * 60


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check."""

    allowed: bool
    remaining_seconds: int | None = None
    attempts_remaining: int | None = None

    @property
    def remaining_minutes(self) -> int:
        return math.ceil((self.remaining_seconds or 0) / 60)


@dataclass(frozen=True)
class _Counter:
    count: int
    reset_time: int

    @classmethod
    def parse(cls, value: object) -> "_Counter | None":
        if not isinstance(value, dict):
            return None
        count = value.get("count")
        reset_time = value.get("resetTime")
        if not isinstance(count, int) or not isinstance(reset_time, int | float):
            return None
        return cls(count=count, reset_time=int(reset_time))

    def to_record(self) -> dict[str, int]:
        return {"count": self.count, "resetTime": self.reset_time}


class LoginRateLimiter:
    """Counts failed logins per address and locks the address out."""

    def __init__(
        self,
        store: KeyValueStore,
        max_attempts: int = MAX_ATTEMPTS,
        lockout_seconds: int = LOCKOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self._clock = clock

    def _key(self, client_ip: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}{client_ip}"

    def _now(self) -> int:
        return int(self._clock())

    async def check(self, client_ip: str) -> RateLimitDecision:
        """Decide whether a login attempt from client_ip may proceed."""
        key = self._key(client_ip)
        result = await self._store.get(key)

        if result.unavailable:
            logger.warning(f"Rate limit store unavailable, allowing {client_ip}: {result.error}")
            return RateLimitDecision(allowed=True)
        if not result.ok:
            return RateLimitDecision(allowed=True, attempts_remaining=self.max_attempts)

        counter = _Counter.parse(result.value)
        if counter is None:
            logger.warning(f"Discarding malformed rate limit record for {client_ip}")
            await self._store.delete(key)
            return RateLimitDecision(allowed=True, attempts_remaining=self.max_attempts)

        now = self._now()
        if counter.reset_time <= now:
            # Window elapsed before the store expired the key
            await self._store.delete(key)
            return RateLimitDecision(allowed=True, attempts_remaining=self.max_attempts)

        if counter.count >= self.max_attempts:
            return RateLimitDecision(
                allowed=False,
                remaining_seconds=counter.reset_time - now,
                attempts_remaining=0,
            )

        return RateLimitDecision(
            allowed=True,
            attempts_remaining=max(0, self.max_attempts - counter.count),
        )

    async def record_failure(self, client_ip: str) -> None:
        """Count a failed login for client_ip."""
        key = self._key(client_ip)
        now = self._now()

        result = await self._store.get(key)
        if result.unavailable:
            logger.warning(f"Rate limit store unavailable, failure for {client_ip} not counted")
            return

        counter = _Counter.parse(result.value) if result.ok else None
        if counter is None or counter.reset_time <= now:
            counter = _Counter(count=1, reset_time=now + self.lockout_seconds)
        else:
            counter = _Counter(count=counter.count + 1, reset_time=counter.reset_time)

        ttl = max(1, counter.reset_time - now)
        written = await self._store.set(key, counter.to_record(), ttl_seconds=ttl)
        if not written.ok:
            logger.warning(f"Could not record failed login for {client_ip}: {written.error}")
            return

        if counter.count == self.max_attempts:
            logger.warning(
                f"Login locked out for {client_ip} after {counter.count} failed attempts "
                f"({ttl}s remaining)"
            )

    async def record_success(self, client_ip: str) -> None:
        """Clear the failure counter for client_ip."""
        result = await self._store.delete(self._key(client_ip))
        if not result.ok:
            logger.warning(f"Could not clear rate limit for {client_ip}: {result.error}")
