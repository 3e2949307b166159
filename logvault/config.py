# logvault/config.py
"""
Centralized configuration with validation.

Uses pydantic-settings to load and validate all environment variables at startup.
Fail fast with clear error messages if required config is missing.
"""

from functools import lru_cache

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings

from logvault.constants import ArchiveDefaults, ConflictPolicy, RetentionDefaults
from logvault.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Hot store
    DATABASE_URL: str = Field(
        ...,
        description="SQLAlchemy URL of the hot log store",
    )

    # Cold store
    STORAGE_PROVIDER: str = Field(
        default="s3",
        description="Cold storage provider: s3, local",
    )
    LOCAL_STORAGE_PATH: str = Field(
        default="./storage",
        description="Path for local storage provider",
    )
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: str | None = None
    S3_BUCKET: str | None = Field(
        default=None,
        description="Bucket holding log archives (required for s3)",
    )
    S3_ENDPOINT_URL: str | None = Field(
        default=None,
        description="Custom endpoint for S3-compatible services",
    )
    S3_REGION: str = Field(
        default="us-east-1",
        description="AWS region",
    )
    COLD_STORAGE_CLASS: str = Field(
        default=RetentionDefaults.COLD_STORAGE_CLASS,
        description="S3 storage class used for the cold tier",
    )

    # Retention
    RETENTION_YEARS: int = Field(
        default=RetentionDefaults.RETENTION_YEARS,
        ge=1,
        description="Years an archive must remain retrievable",
    )
    EXPIRY_WARNING_DAYS: int = Field(
        default=RetentionDefaults.EXPIRY_WARNING_DAYS,
        ge=1,
        description="Days ahead to report archives approaching expiry",
    )

    # Archival
    IO_TIMEOUT_SECONDS: float = Field(
        default=ArchiveDefaults.IO_TIMEOUT_SECONDS,
        gt=0,
        description="Deadline for each hot/cold store call",
    )
    ARCHIVE_LOCK_TTL_SECONDS: int = Field(
        default=ArchiveDefaults.LOCK_TTL_SECONDS,
        gt=0,
        description="Lifetime of the per-(type, date) advisory lock",
    )
    ARCHIVE_CONFLICT_POLICY: ConflictPolicy = Field(
        default=ConflictPolicy.SKIP,
        description="Re-archival policy when a blob already exists: skip, merge",
    )
    SEARCH_MAX_CONCURRENCY: int = Field(
        default=ArchiveDefaults.SEARCH_MAX_CONCURRENCY,
        ge=1,
        description="Maximum days fetched in parallel by range search",
    )

    # Logging
    LOG_FORMAT: str = Field(
        default="json",
        description="Log output format: json, text",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level",
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def fix_database_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but SQLAlchemy needs postgresql+psycopg2://"""
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+psycopg2://", 1)
        return v

    @field_validator("STORAGE_PROVIDER", "LOG_FORMAT")
    @classmethod
    def normalize_choice(cls, v: str) -> str:
        return v.lower().strip()

    @model_validator(mode="after")
    def lock_outlives_backend_calls(self) -> "Settings":
        """A lock kept after a timed-out write must expire only once that write has finished."""
        floor = self.IO_TIMEOUT_SECONDS + ArchiveDefaults.MAX_BACKEND_CALL_SECONDS
        if self.ARCHIVE_LOCK_TTL_SECONDS <= floor:
            raise ValueError(
                f"ARCHIVE_LOCK_TTL_SECONDS ({self.ARCHIVE_LOCK_TTL_SECONDS}) must exceed "
                f"IO_TIMEOUT_SECONDS plus the backend client timeouts ({floor:g}s)"
            )
        return self

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings. Call at startup to validate config."""
    return Settings()


def load_settings() -> Settings:
    """
    Load settings, translating validation failures into ConfigurationError.

    Raises:
        ConfigurationError: If a required setting is missing or invalid
    """
    try:
        return get_settings()
    except ValidationError as e:
        missing = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise ConfigurationError(f"Invalid configuration: {missing or e}", setting=missing or None) from e
