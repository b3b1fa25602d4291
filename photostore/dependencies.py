"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from photostore.config import get_settings
from photostore.db import (
    DynamoMetadataRepository,
    InMemoryMetadataRepository,
    MetadataRepository,
)
from photostore.service import EngagementService
from photostore.storage import (
    InMemoryStorageClient,
    S3StorageClient,
    StorageClient,
    UnconfiguredStorageClient,
)

_repository: MetadataRepository | None = None
_storage_client: StorageClient | None = None
_engagement_service: EngagementService | None = None


def get_repository() -> MetadataRepository:
    """
    Return a singleton repository; configuration is read once per process.
    """
    global _repository
    if _repository:
        return _repository

    settings = get_settings()
    if settings.use_in_memory_backends:
        _repository = InMemoryMetadataRepository()
    else:
        _repository = DynamoMetadataRepository(
            photos_table=settings.photos_table,
            comments_table=settings.comments_table,
            ratings_table=settings.ratings_table,
            region=settings.aws_region,
            endpoint_url=settings.dynamodb_endpoint,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )
    return _repository


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _storage_client = InMemoryStorageClient()
    elif not settings.s3_bucket:
        _storage_client = UnconfiguredStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.s3_bucket,
            region=settings.aws_region,
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.s3_public_base_url or "",
        )
    return _storage_client


def get_engagement_service() -> EngagementService:
    global _engagement_service
    if _engagement_service:
        return _engagement_service

    settings = get_settings()
    _engagement_service = EngagementService(
        get_repository(), author_max_length=settings.author_max_length
    )
    return _engagement_service
