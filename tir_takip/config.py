from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Project Info
    PROJECT_NAME: str = "GMİ TIR TAKİP API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = Field(default="development", description="Environment: development, staging, production")

    # Metadata store
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="Async SQLAlchemy URL (e.g. sqlite+aiosqlite:///./data/tir.db). Empty = in-memory store"
    )
    DB_CONNECT_TIMEOUT: int = Field(default=10, description="Seconds allowed for the startup connection attempt")

    # Blob store (Cloudinary)
    CLOUDINARY_CLOUD_NAME: str = Field(default="", description="Cloudinary cloud name")
    CLOUDINARY_API_KEY: str = Field(default="", description="Cloudinary API key")
    CLOUDINARY_API_SECRET: str = Field(default="", description="Cloudinary API secret")
    CLOUDINARY_FOLDER: str = Field(default="gmi-tir-documents", description="Folder for uploaded documents")
    BLOB_OPERATION_TIMEOUT: int = Field(default=60, description="Timeout for a single blob upload/delete in seconds")

    # Admin gate
    ADMIN_API_KEY: str = Field(
        default="",
        description="If set, admin endpoints require a matching X-API-Key header"
    )

    # Security - CORS
    BACKEND_CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # File uploads
    MAX_FILE_SIZE: int = Field(default=10485760, description="Max file size in bytes (default 10MB)")
    MAX_REQUEST_SIZE: int = Field(default=11534336, description="Max request body size in bytes (default 11MB)")
    ALLOWED_FILE_EXTENSIONS: List[str] = Field(
        default=["pdf", "jpg", "jpeg", "png"],
        description="Allowed file extensions (also matched against the MIME type)"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    LOG_DIR: str = Field(default="./logs", description="Directory for log files")
    LOG_RETENTION_DAYS: int = Field(default=30, description="Number of days to keep log files")
    LOG_ENABLE_REQUEST_LOGGING: bool = Field(default=True, description="Enable HTTP request/response logging")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True, description="Enable rate limiting")
    RATE_LIMIT_DEFAULT: str = Field(default="200/minute", description="Default rate limit")
    RATE_LIMIT_PUBLIC: str = Field(default="30/minute", description="Rate limit for public share endpoints")
    RATE_LIMIT_STORAGE_URI: str = Field(default="memory://", description="Rate limit storage URI")

    # Circuit Breaker
    CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = Field(default=5, description="Failures before circuit opens")
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT: int = Field(default=30, description="Seconds before attempting reset")
    CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS: int = Field(default=3, description="Max calls in half-open state")

    def get_log_level(self) -> str:
        """Get log level based on environment."""
        if self.ENVIRONMENT.lower() in ["development", "dev", "test"]:
            return "DEBUG"
        return self.LOG_LEVEL.upper()


settings = Settings()
