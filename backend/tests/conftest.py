"""Pytest configuration and fixtures for backend tests.

Store Handling:
- Every test gets a fresh MemoryStore driven by a fake clock, so key TTLs,
  lockout windows and session expiry can be advanced without sleeping
- No Redis server is needed; RedisStore is tested against a mocked client
"""

import os
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
TEST_JWT_SECRET = "test-jwt-secret-" + "0" * 32
os.environ["JWT_SECRET_KEY"] = TEST_JWT_SECRET
os.environ["STORE_BACKEND"] = "memory"
os.environ["ENVIRONMENT"] = "test"

from portfolio_admin.core.config import Settings  # noqa: E402
from portfolio_admin.core.kv_store import KeyValueStore, MemoryStore, StoreResult  # noqa: E402
from portfolio_admin.services.credentials import (  # noqa: E402
    DEFAULT_ADMIN_EMAIL,
    DEFAULT_ADMIN_PASSWORD,
    CredentialStore,
)
from portfolio_admin.services.rate_limit import LoginRateLimiter  # noqa: E402


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class UnavailableStore(KeyValueStore):
    """Store whose backend is always unreachable."""

    name = "redis"

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def get(self, key: str) -> StoreResult:
        self.calls.append(f"get {key}")
        return StoreResult.failed("connection refused")

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
        only_if_absent: bool = False,
    ) -> StoreResult:
        self.calls.append(f"set {key}")
        return StoreResult.failed("connection refused")

    async def delete(self, key: str) -> StoreResult:
        self.calls.append(f"delete {key}")
        return StoreResult.failed("connection refused")

    async def ping(self) -> StoreResult:
        return StoreResult.failed("connection refused")


# --- Store Fixtures ---


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> MemoryStore:
    """A fresh in-memory store sharing the fake clock."""
    return MemoryStore(clock=clock)


@pytest.fixture
def unavailable_store() -> UnavailableStore:
    return UnavailableStore()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        jwt_secret_key=TEST_JWT_SECRET,
        store_backend="memory",
        environment="test",
    )


@pytest_asyncio.fixture
async def admin_credentials(memory_store: MemoryStore) -> dict[str, str]:
    """Initialize the default admin account and return its credentials."""
    await CredentialStore(memory_store).initialize_if_absent()
    return {"email": DEFAULT_ADMIN_EMAIL, "password": DEFAULT_ADMIN_PASSWORD}


# --- App Fixtures ---


def _build_app(app_settings: Settings, store: KeyValueStore | None, clock: FakeClock):
    from portfolio_admin.main import create_app

    app = create_app(app_settings, kv_store=store)
    # Drive lockout windows with the fake clock
    limiter = app.state.auth_service.rate_limiter
    app.state.auth_service.rate_limiter = LoginRateLimiter(
        limiter._store,
        max_attempts=limiter.max_attempts,
        lockout_seconds=limiter.lockout_seconds,
        clock=clock,
    )
    return app


@pytest.fixture
def app(test_settings: Settings, memory_store: MemoryStore, clock: FakeClock):
    """Application wired to the in-memory store."""
    return _build_app(test_settings, memory_store, clock)


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for the in-memory app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def logged_in_client(
    async_client: AsyncClient, admin_credentials: dict[str, str]
) -> AsyncClient:
    """Async client holding a valid admin-token cookie."""
    response = await async_client.post("/api/auth/login", json=admin_credentials)
    assert response.status_code == 200
    assert async_client.cookies.get("admin-token")
    return async_client


@pytest.fixture
def build_app(test_settings: Settings, clock: FakeClock):
    """Factory for apps with a different store or settings."""

    def _factory(store: KeyValueStore | None, app_settings: Settings | None = None):
        return _build_app(app_settings or test_settings, store, clock)

    return _factory
