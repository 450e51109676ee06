"""Portfolio Admin Configuration - environment-driven settings."""

import secrets
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "Portfolio Admin"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Token signing
    jwt_secret_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("JWT_SECRET_KEY", "JWT_SECRET"),
    )
    jwt_algorithm: str = "HS256"
    session_ttl_days: int = Field(default=7, ge=1, le=90)

    # Key-value store
    store_backend: Literal["redis", "memory"] = "redis"
    redis_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("REDIS_URL", "KV_URL"),
    )

    # Login throttling
    login_max_attempts: int = Field(default=5, ge=1)
    login_lockout_seconds: int = Field(default=900, ge=1)

    # Client address resolution
    trust_proxy_headers: bool = False
    trusted_proxy_ips: str = ""

    # CORS
    cors_origins: str = "http://localhost:3000"

    _generated_jwt_secret: str | None = PrivateAttr(default=None)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(VALID_LOG_LEVELS)}")
        return level

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str | None) -> str | None:
        """Reject short signing secrets; an empty value means unset."""
        if v is None or not v.strip():
            return None
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return v

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None) -> str | None:
        """Accept only redis:// style URLs; an empty value means unset."""
        if v is None or not v.strip():
            return None
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("REDIS_URL must start with redis://, rediss:// or unix://")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_days * 24 * 60 * 60

    @property
    def effective_jwt_secret_key(self) -> str:
        """Signing secret, generated once per process when not configured.

        A generated secret does not survive restarts and is not shared
        between instances, so every restart logs all sessions out.
        """
        if self.jwt_secret_key:
            return self.jwt_secret_key
        if self._generated_jwt_secret is None:
            self._generated_jwt_secret = secrets.token_hex(32)
        return self._generated_jwt_secret

    @property
    def trusted_proxy_ips_list(self) -> list[str]:
        return [ip.strip() for ip in self.trusted_proxy_ips.split(",") if ip.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def store_label(self) -> str:
        """Short name of the configured store for status reporting."""
        if self.store_backend == "memory":
            return "memory"
        return "redis" if self.redis_url else "unconfigured"

    def check_security_configuration(self) -> list[str]:
        """Return human-readable warnings about insecure configuration."""
        warnings = []
        if not self.jwt_secret_key:
            warnings.append(
                "JWT_SECRET_KEY is not set. Using a random per-process secret; "
                "sessions will not survive restarts or span multiple instances."
            )
        if self.store_backend == "redis" and not self.redis_url:
            warnings.append(
                "STORE_BACKEND=redis but REDIS_URL is not set. Admin credentials and "
                "sessions are unavailable until a Redis URL is configured."
            )
        if self.store_backend == "memory" and self.is_production:
            warnings.append(
                "STORE_BACKEND=memory in production. Credentials, sessions and login "
                "throttling are lost on restart and not shared between instances."
            )
        if self.is_production and self.debug:
            warnings.append("DEBUG is enabled in production; API docs are exposed.")
        if self.trust_proxy_headers and self.trusted_proxy_ips_list:
            warnings.append(
                "TRUST_PROXY_HEADERS=true overrides TRUSTED_PROXY_IPS; forwarded "
                "headers are trusted from every peer."
            )
        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
