"""
Configuration management for the media storage gateway.
Uses pydantic-settings for environment-based configuration.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Settings
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Media Storage Gateway"
    DEBUG: bool = False

    # Storage Backend Selection
    STORAGE_BACKEND: Literal["local", "s3", "azure"] = "local"

    # Local Storage Settings
    LOCAL_STORAGE_PATH: str = "./storage"

    # S3/MinIO Settings
    S3_ENDPOINT_URL: str | None = None
    S3_ACCESS_KEY: str | None = None
    S3_SECRET_KEY: str | None = None
    S3_REGION: str = "us-east-1"

    # Azure Blob Settings
    AZURE_STORAGE_CONNECTION_STRING: str | None = None

    # Tenancy: one container per tenant, named CONTAINER_PREFIX + sanitized tenant
    DEFAULT_TENANT: str = "public"
    CONTAINER_PREFIX: str = "media-"
    TENANT_HEADER: str = "X-Tenant-Id"

    # Remote permission service (read authorization)
    PERMISSION_SERVICE_URL: str = "http://localhost:8081"
    PERMISSION_SERVICE_TIMEOUT: float = 5.0

    # Audit bus (Kafka). Audit emission is disabled while the topic is unset.
    KAFKA_BOOTSTRAP_SERVERS: str = "localhost:9092"
    KAFKA_AUDIT_TOPIC: str | None = None
    KAFKA_MAX_BLOCK_MS: int = 2000
    # Fixed protocol version: building the producer never contacts the broker
    KAFKA_API_VERSION: str = "2.5.0"
    KAFKA_PRODUCER_RETRY_BACKOFF: float = 30.0  # seconds between producer creation attempts

    # Identity provider (Firebase secure-token JWTs by default)
    AUTH_JWKS_URL: str = (
        "https://www.googleapis.com/service_accounts/v1/jwk/"
        "securetoken@system.gserviceaccount.com"
    )
    AUTH_ISSUER: str | None = None
    AUTH_AUDIENCE: str | None = None

    # Development Mode - bypasses JWT validation for local testing
    DEV_MODE: bool = False
    DEV_USER_ID: str = "dev-user-001"
    DEV_USER_EMAIL: str = "developer@example.com"

    # File Upload Limits
    MAX_UPLOAD_SIZE: int = 100 * 1024 * 1024  # 100MB

    # Logging
    LOG_LEVEL: str = "INFO"

    # JWKS Cache TTL in seconds
    JWKS_CACHE_TTL: int = 3600  # 1 hour


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.
    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
