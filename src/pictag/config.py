"""Environment-based configuration for Pictag."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from PICTAG_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PICTAG_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080
    log_level: str = "INFO"

    # Backing services
    backend: Literal["aws", "memory"] = "aws"
    aws_region: str = "us-east-1"
    aws_profile: str | None = None
    s3_endpoint_url: str | None = None
    rekognition_endpoint_url: str | None = None
    dynamodb_endpoint_url: str | None = None

    # Storage layout
    bucket_name: str = "pictag-uploads"
    table_name: str = "ImageMetadata"
    upload_prefix: str = "uploads/"

    # Label detection
    max_labels: int = Field(default=10, ge=1)
    min_confidence: float = Field(default=0.70, ge=0.0, le=1.0)

    # Input limits
    max_file_size: int = Field(default=20_971_520, ge=1)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
