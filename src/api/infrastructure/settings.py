"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        TENANTCORE_DB_HOST: Database host (default: localhost)
        TENANTCORE_DB_PORT: Database port (default: 5432)
        TENANTCORE_DB_DATABASE: Database name (default: tenantcore)
        TENANTCORE_DB_USERNAME: Database user (default: tenantcore)
        TENANTCORE_DB_PASSWORD: Database password (required in production)
        TENANTCORE_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        TENANTCORE_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTCORE_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="tenantcore", description="Database name")
    username: str = Field(default="tenantcore", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class StoreSettings(BaseSettings):
    """Record store and tenant resolution settings.

    Environment variables:
        TENANTCORE_STORE_BACKEND: "memory" or "postgres" (default: memory)
        TENANTCORE_STORE_TENANT_HEADER: Target tenant header for privileged
            actors (default: X-Tenant-ID)
        TENANTCORE_STORE_TENANT_QUERY_PARAM: Target tenant query parameter
            (default: tenant_id)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTCORE_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: Literal["memory", "postgres"] = Field(
        default="memory",
        description="Document store backend",
    )
    tenant_header: str = Field(
        default="X-Tenant-ID",
        description="Header carrying the explicit target tenant",
    )
    tenant_query_param: str = Field(
        default="tenant_id",
        description="Query parameter carrying the explicit target tenant",
    )


class FileStorageSettings(BaseSettings):
    """File storage and deletion-tag reconciliation settings.

    Environment variables:
        TENANTCORE_FILES_BACKEND: "memory" or "s3" (default: memory)
        TENANTCORE_FILES_S3_ENDPOINT_URL: Custom S3 endpoint (MinIO etc.)
        TENANTCORE_FILES_S3_REGION: S3 region (default: us-east-1)
        TENANTCORE_FILES_S3_ACCESS_KEY_ID: S3 access key
        TENANTCORE_FILES_S3_SECRET_ACCESS_KEY: S3 secret key
        TENANTCORE_FILES_RETENTION_DAYS: Days before tagged files expire (default: 90)
        TENANTCORE_FILES_RECONCILER_ENABLED: Run the pending tag reconciler (default: true)
        TENANTCORE_FILES_RECONCILER_POLL_INTERVAL_SECONDS: Poll interval (default: 30)
        TENANTCORE_FILES_RECONCILER_BATCH_SIZE: Entries per batch (default: 100)
        TENANTCORE_FILES_RECONCILER_MAX_RETRIES: Attempts before dead-lettering (default: 5)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTCORE_FILES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: Literal["memory", "s3"] = Field(
        default="memory",
        description="File storage backend",
    )
    s3_endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint URL",
    )
    s3_region: str = Field(default="us-east-1", description="S3 region")
    s3_access_key_id: str | None = Field(default=None, description="S3 access key")
    s3_secret_access_key: SecretStr | None = Field(
        default=None,
        description="S3 secret key",
    )
    retention_days: int = Field(
        default=90,
        description="Days a soft-deleted file is retained before erasure",
        ge=1,
    )
    reconciler_enabled: bool = Field(
        default=True,
        description="Enable the pending file tag reconciler",
    )
    reconciler_poll_interval_seconds: int = Field(
        default=30,
        description="Seconds between reconciler polls",
        ge=1,
        le=3600,
    )
    reconciler_batch_size: int = Field(
        default=100,
        description="Pending tags processed per batch",
        ge=1,
        le=1000,
    )
    reconciler_max_retries: int = Field(
        default=5,
        description="Attempts before a pending tag is dead-lettered",
        ge=1,
        le=100,
    )

    @model_validator(mode="after")
    def validate_s3_credentials(self) -> "FileStorageSettings":
        """Validate that S3 credentials are provided in pairs."""
        has_key = self.s3_access_key_id is not None
        has_secret = self.s3_secret_access_key is not None
        if has_key != has_secret:
            raise ValueError(
                "s3_access_key_id and s3_secret_access_key must be set together"
            )
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="TENANTCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Tenantcore API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def store(self) -> StoreSettings:
        """Get record store settings."""
        return get_store_settings()

    @property
    def files(self) -> FileStorageSettings:
        """Get file storage settings."""
        return get_file_storage_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_store_settings() -> StoreSettings:
    """Get cached record store settings."""
    return StoreSettings()


@lru_cache
def get_file_storage_settings() -> FileStorageSettings:
    """Get cached file storage settings."""
    return FileStorageSettings()
