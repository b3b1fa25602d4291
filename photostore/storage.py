"""
Object storage for uploaded images: S3-compatible and in-memory testing.
"""

from __future__ import annotations

import io
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from photostore.errors import ConfigurationMissing, UploadFailed

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^\w.\-]")


@dataclass(frozen=True)
class ObjectRef:
    """Durable reference to a stored object."""

    url: str
    stored_name: str


def make_object_name(original_name: Optional[str]) -> str:
    """Unique object key built from a sanitized original file name."""
    safe_name = _UNSAFE_NAME_CHARS.sub("_", original_name or "upload")
    return f"{uuid.uuid4()}-{safe_name}"


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload_bytes(self, data: bytes, key: str, content_type: str) -> ObjectRef:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = field(default_factory=dict)

    def upload_bytes(self, data: bytes, key: str, content_type: str) -> ObjectRef:
        self.stored_objects[key] = (bytes(data), content_type)
        return ObjectRef(url=f"{self.base_url}/{key}", stored_name=key)


@dataclass
class UnconfiguredStorageClient:
    """Stands in when no bucket is configured; every upload fails."""

    def upload_bytes(self, data: bytes, key: str, content_type: str) -> ObjectRef:
        raise ConfigurationMissing(
            "S3_BUCKET missing", details={"element": "bucket"}
        )


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client (AWS S3, MinIO and friends).
    """

    bucket: str
    region: str
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    public_base_url: str = ""

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def object_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload_bytes(self, data: bytes, key: str, content_type: str) -> ObjectRef:
        try:
            self._client.upload_fileobj(
                io.BytesIO(data),
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type or "application/octet-stream"},
            )
        except (S3UploadFailedError, ClientError, BotoCoreError) as e:
            logger.error("Failed to upload s3://%s/%s: %s", self.bucket, key, e)
            raise UploadFailed(
                "Upload failed", details={"bucket": self.bucket, "key": key}
            ) from e
        logger.info("Uploaded s3://%s/%s", self.bucket, key)
        return ObjectRef(url=self.object_url(key), stored_name=key)
