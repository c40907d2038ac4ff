"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn, RedisDsn, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "RBAC Core"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Database (required - no default for security)
    database_url: PostgresDsn = Field(
        description="PostgreSQL connection URL. Must be set via environment variable."
    )
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Redis (cache invalidation sink)
    redis_url: RedisDsn | None = Field(default="redis://localhost:6379")

    # Role hierarchy
    # Effective priority of a user without any active role. Lower is more privileged,
    # so every real role priority must stay strictly below this value.
    no_role_priority: int = Field(default=999, gt=1)
    default_role_priority: int = Field(default=100, gt=0)
    protected_role_name: str = "super_admin"

    # Caller identity (tokens are issued elsewhere, only verified here)
    jwt_secret: str = Field(default="change-me-in-production-please-32chars", min_length=32)
    jwt_algorithm: str = "HS256"

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate settings for consistency and security requirements."""
        if self.environment == "production" and self.debug:
            raise ValueError("DEBUG mode cannot be enabled in production environment.")

        url = str(self.database_url)
        if not url.startswith(("postgresql://", "postgres://", "postgresql+asyncpg://")):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL URL starting with 'postgresql://' or 'postgres://'"
            )

        if self.default_role_priority >= self.no_role_priority:
            raise ValueError(
                f"DEFAULT_ROLE_PRIORITY ({self.default_role_priority}) must be lower than "
                f"NO_ROLE_PRIORITY ({self.no_role_priority})"
            )

        return self

    @property
    def async_database_url(self) -> str:
        """Get async database URL for SQLAlchemy with asyncpg.

        Converts sslmode parameter to ssl for asyncpg compatibility.
        """
        url = str(self.database_url)
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        if "+asyncpg" not in url:
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        url = url.replace("sslmode=", "ssl=")
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
