"""
Configuration and settings for the photo engagement backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    cors_origin: str = Field(default="*")
    log_level: str = Field(default="INFO")

    # Shared secret for photo uploads; uploads are open when unset.
    upload_key: Optional[str] = Field(default=None)

    # AWS credentials (fall back to the default boto3 chain when unset)
    aws_region: str = Field(default="us-east-1")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Document store (DynamoDB)
    dynamodb_endpoint: Optional[str] = Field(default=None)
    photos_table: Optional[str] = Field(default=None)
    comments_table: Optional[str] = Field(default=None)
    ratings_table: Optional[str] = Field(default=None)

    # Object storage (S3-compatible)
    s3_endpoint: Optional[str] = Field(default=None)
    s3_bucket: Optional[str] = Field(default=None)
    s3_public_base_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="PHOTOSTORE_USE_IN_MEMORY_BACKENDS"
    )

    author_max_length: int = Field(default=40, ge=1)

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()] or ["*"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
