"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Variable names match the resume application's container configuration
(STORAGE_ENDPOINT, STORAGE_BUCKET, ...) so the same compose file drives
both services.

Mock mode enables local development without an object store.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Resume Storage API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys accepted in the X-API-Key header."
    )

    # Storage Configuration
    storage_endpoint: str = Field(
        default="localhost",
        description="Host of the S3-compatible object store (e.g. 'minio')"
    )
    storage_port: int = Field(
        default=9000,
        description="Port of the object store"
    )
    storage_region: str = Field(
        default="us-east-1",
        description="Region passed to the S3 client"
    )
    storage_bucket: str = Field(
        default="default",
        description="Bucket holding every resume file"
    )
    storage_access_key: str = Field(
        default="",
        description="Object store access key"
    )
    storage_secret_key: str = Field(
        default="",
        description="Object store secret key"
    )
    storage_use_ssl: bool = Field(
        default=False,
        description="Connect to the object store over HTTPS"
    )
    storage_skip_bucket_check: bool = Field(
        default=False,
        description="Skip bucket provisioning at startup. For stores where the bucket is managed elsewhere."
    )
    storage_url: str = Field(
        default="http://localhost:9000/default",
        description="Public base URL of the bucket, used to build returned object URLs"
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory store instead of a real bucket. Enables local dev without object storage."
    )

    # Application Behavior
    max_upload_size_mb: int = Field(
        default=10,
        description="Maximum upload size in MB. Resumes and pictures are small; anything bigger is a mistake."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        """
        missing = []

        if not self.api_keys_list:
            missing.append("API_KEYS")

        # Object store only required if not in mock mode
        if not self.storage_mock_mode:
            if not self.storage_endpoint:
                missing.append("STORAGE_ENDPOINT")
            if not self.storage_bucket:
                missing.append("STORAGE_BUCKET")
            if not self.storage_access_key:
                missing.append("STORAGE_ACCESS_KEY")
            if not self.storage_secret_key:
                missing.append("STORAGE_SECRET_KEY")

        if not self.storage_url:
            missing.append("STORAGE_URL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process; they don't change at runtime.
    For tests, call get_settings.cache_clear() to reset.
    """
    return Settings()
