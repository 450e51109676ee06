"""Administrator credential record persisted in the key-value store."""

import logging
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from portfolio_admin.core.kv_store import KeyValueStore, StoreResult
from portfolio_admin.services.passwords import hash_password

logger = logging.getLogger(__name__)

ADMIN_CREDENTIALS_KEY = "portfolio:admin:credentials"
DEFAULT_ADMIN_EMAIL = "admin@portfolio.com"
DEFAULT_ADMIN_PASSWORD = "ChangeThisPassword123!"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AdminCredential(BaseModel):
    """The single administrator identity.

    Serialized with camelCase keys so records written by the earlier
    deployment of the site remain readable; their bcrypt hashes still
    verify and are upgraded on the next login.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    email: str
    password_hash: str = Field(alias="passwordHash")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    def to_record(self) -> dict[str, str | None]:
        return self.model_dump(mode="json", by_alias=True)


class InitializationResult(str, Enum):
    CREATED = "created"
    EXISTS = "exists"
    FAILED = "failed"


class CredentialStore:
    """Reads and replaces the administrator credential record."""

    def __init__(self, store: KeyValueStore | None) -> None:
        self._store = store

    @property
    def configured(self) -> bool:
        return self._store is not None

    async def _load(self) -> StoreResult:
        if self._store is None:
            return StoreResult.failed("no key-value store configured")
        return await self._store.get(ADMIN_CREDENTIALS_KEY)

    async def get(self) -> AdminCredential | None:
        """Fetch the credential record; None when absent or unreadable."""
        result = await self._load()
        if not result.ok:
            if result.unavailable:
                logger.error(f"Admin credentials unavailable: {result.error}")
            return None
        try:
            return AdminCredential.model_validate(result.value)
        except ValidationError as e:
            logger.error(f"Stored admin credentials are malformed: {e.error_count()} errors")
            return None

    async def exists(self) -> bool | None:
        """Whether a record exists; None when the store cannot be reached."""
        result = await self._load()
        if result.unavailable:
            return None
        return result.ok

    def _record(self, email: str, password_hash: str) -> dict[str, str | None]:
        return AdminCredential(
            email=normalize_email(email),
            password_hash=password_hash,
            updated_at=datetime.now(UTC),
        ).to_record()

    async def save(self, email: str, password_hash: str) -> bool:
        """Replace the whole record with a new email and password hash."""
        if self._store is None:
            return False
        result = await self._store.set(ADMIN_CREDENTIALS_KEY, self._record(email, password_hash))
        if not result.ok:
            logger.error(f"Failed to save admin credentials: {result.error}")
            return False
        return True

    async def initialize_if_absent(self) -> InitializationResult:
        """Create the default administrator unless a record already exists.

        Never overwrites an existing record, including when several
        initializations race: the write only happens if the key is absent.
        """
        if self._store is None:
            return InitializationResult.FAILED
        current = await self._store.get(ADMIN_CREDENTIALS_KEY)
        if current.unavailable:
            logger.error(f"Admin credentials unavailable: {current.error}")
            return InitializationResult.FAILED
        if current.ok:
            return InitializationResult.EXISTS

        record = self._record(DEFAULT_ADMIN_EMAIL, hash_password(DEFAULT_ADMIN_PASSWORD))
        result = await self._store.set(ADMIN_CREDENTIALS_KEY, record, only_if_absent=True)
        if not result.ok:
            logger.error(f"Failed to initialize admin credentials: {result.error}")
            return InitializationResult.FAILED
        if not result.value:
            return InitializationResult.EXISTS

        logger.warning(
            f"Default admin credentials initialized for {DEFAULT_ADMIN_EMAIL}. "
            "Change the password immediately."
        )
        return InitializationResult.CREATED
