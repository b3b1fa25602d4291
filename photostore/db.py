"""
Metadata repository for photos, comments and ratings.

Provides a DynamoDB-backed implementation and an in-memory one for
development and tests. Both keep comments and ratings partitioned by the
owning photo id and return listings newest first.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterator, List, Optional, Protocol

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from photostore.errors import Conflict, ConfigurationMissing, StoreUnreachable

logger = logging.getLogger(__name__)

_CREDENTIAL_ERROR_CODES = {
    "UnrecognizedClientException",
    "InvalidSignatureException",
    "MissingAuthenticationTokenException",
    "ExpiredTokenException",
}


def now_iso() -> str:
    """UTC timestamp with millisecond precision, e.g. 2024-05-01T10:00:00.000Z."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass
class Photo:
    id: str
    image_url: str
    blob_name: str
    title: str = ""
    caption: str = ""
    location: str = ""
    people: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=now_iso)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "imageUrl": self.image_url,
            "blobName": self.blob_name,
            "title": self.title,
            "caption": self.caption,
            "location": self.location,
            "people": list(self.people),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Photo":
        return cls(
            id=item["id"],
            image_url=item.get("imageUrl", ""),
            blob_name=item.get("blobName", ""),
            title=item.get("title", ""),
            caption=item.get("caption", ""),
            location=item.get("location", ""),
            people=list(item.get("people") or []),
            created_at=item.get("createdAt", ""),
        )


@dataclass
class Comment:
    id: str
    photo_id: str
    author: str
    text: str
    created_at: str = field(default_factory=now_iso)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "photoId": self.photo_id,
            "author": self.author,
            "text": self.text,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Comment":
        return cls(
            id=item["id"],
            photo_id=item["photoId"],
            author=item.get("author", ""),
            text=item.get("text", ""),
            created_at=item.get("createdAt", ""),
        )


@dataclass
class Rating:
    id: str
    photo_id: str
    author: str
    value: int
    created_at: str = field(default_factory=now_iso)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "photoId": self.photo_id,
            "author": self.author,
            "value": self.value,
            "createdAt": self.created_at,
        }


def newest_first(records: List[Any]) -> List[Any]:
    # sorted() is stable, so equal timestamps keep their read order.
    return sorted(records, key=lambda record: record.created_at, reverse=True)


def coerce_rating_value(raw: Any) -> Any:
    """
    Convert a stored rating value to int or float where it parses as a
    finite number (Decimal from DynamoDB, or a numeric string left by a
    direct edit). Anything else is returned unchanged so the aggregator
    can still bucket it.
    """
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw
    if isinstance(raw, str):
        try:
            raw = Decimal(raw.strip())
        except InvalidOperation:
            return raw
    if isinstance(raw, Decimal):
        if not raw.is_finite():
            return float(raw) if not raw.is_nan() else raw
        return int(raw) if raw == raw.to_integral_value() else float(raw)
    return raw


class MetadataRepository(Protocol):
    """Interface for photo, comment and rating persistence."""

    def verify(self) -> None:
        ...

    def list_photos(self) -> list[Photo]:
        ...

    def get_photo(self, photo_id: str) -> Optional[Photo]:
        ...

    def create_photo(self, photo: Photo) -> Photo:
        ...

    def list_comments(self, photo_id: str) -> list[Comment]:
        ...

    def add_comment(self, comment: Comment) -> Comment:
        ...

    def upsert_rating(self, rating: Rating) -> Rating:
        ...

    def list_rating_values(self, photo_id: str) -> list[Any]:
        ...


class InMemoryMetadataRepository:
    """Simple in-memory repository for development and tests."""

    def __init__(self):
        self.photos: Dict[str, Photo] = {}
        self.comments: Dict[str, Dict[str, Comment]] = {}
        self.ratings: Dict[str, Dict[str, Rating]] = {}

    def verify(self) -> None:
        return None

    def list_photos(self) -> list[Photo]:
        return newest_first(list(self.photos.values()))

    def get_photo(self, photo_id: str) -> Optional[Photo]:
        return self.photos.get(photo_id)

    def create_photo(self, photo: Photo) -> Photo:
        if photo.id in self.photos:
            raise Conflict("Photo already exists", details={"id": photo.id})
        self.photos[photo.id] = photo
        return photo

    def list_comments(self, photo_id: str) -> list[Comment]:
        return newest_first(list(self.comments.get(photo_id, {}).values()))

    def add_comment(self, comment: Comment) -> Comment:
        partition = self.comments.setdefault(comment.photo_id, {})
        if comment.id in partition:
            raise Conflict("Comment already exists", details={"id": comment.id})
        partition[comment.id] = comment
        return comment

    def upsert_rating(self, rating: Rating) -> Rating:
        self.ratings.setdefault(rating.photo_id, {})[rating.id] = rating
        return rating

    def list_rating_values(self, photo_id: str) -> list[Any]:
        return [
            coerce_rating_value(rating.value)
            for rating in self.ratings.get(photo_id, {}).values()
        ]


class DynamoMetadataRepository:
    """
    DynamoDB-backed repository.

    Table layout:
      photos:   hash key `id`
      comments: hash key `photoId`, range key `id`
      ratings:  hash key `photoId`, range key `id`

    Table names and connectivity are verified lazily before the first data
    operation. A failed check is raised to the caller and retried on the
    next operation.
    """

    def __init__(
        self,
        *,
        photos_table: Optional[str],
        comments_table: Optional[str],
        ratings_table: Optional[str],
        region: str,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        session: Optional[boto3.session.Session] = None,
    ):
        self.table_names = {
            "photos": photos_table or "",
            "comments": comments_table or "",
            "ratings": ratings_table or "",
        }
        self.region = region
        self.endpoint_url = endpoint_url
        self._session = session or boto3.session.Session(
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            region_name=region,
        )
        # boto3 resources are not thread-safe; each worker thread gets its own.
        self._local = threading.local()
        self._session_lock = threading.Lock()
        self._verified = False
        self._verify_lock = threading.Lock()

    @property
    def _resource(self):
        resource = getattr(self._local, "resource", None)
        if resource is None:
            with self._session_lock:
                resource = self._session.resource(
                    "dynamodb",
                    region_name=self.region,
                    endpoint_url=self.endpoint_url or None,
                )
            self._local.resource = resource
        return resource

    @property
    def _client(self):
        return self._resource.meta.client

    def _table(self, element: str):
        return self._resource.Table(self.table_names[element])

    def verify(self) -> None:
        """
        Confirm credentials, the endpoint and all three tables are usable.

        Raises ConfigurationMissing or StoreUnreachable whose details name
        the failing element: credentials, database, photos, comments or
        ratings.
        """
        if self._verified:
            return
        with self._verify_lock:
            if self._verified:
                return
            self._verify_credentials()
            for element, name in self.table_names.items():
                if not name:
                    raise ConfigurationMissing(
                        f"{element.upper()}_TABLE missing",
                        details={"element": element},
                    )
            self._verify_database()
            for element in self.table_names:
                self._verify_table(element)
            self._verified = True
            logger.info(
                "Document store verified (region=%s, tables=%s)",
                self.region,
                ", ".join(self.table_names.values()),
            )

    def _verify_credentials(self) -> None:
        try:
            with self._session_lock:
                credentials = self._session.get_credentials()
        except BotoCoreError as e:
            raise ConfigurationMissing(
                f"AWS credentials could not be resolved: {e}",
                details={"element": "credentials"},
            ) from e
        if credentials is None:
            raise ConfigurationMissing(
                "AWS credentials missing: AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY",
                details={"element": "credentials"},
            )

    def _verify_database(self) -> None:
        try:
            self._client.list_tables(Limit=1)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            element = "credentials" if code in _CREDENTIAL_ERROR_CODES else "database"
            logger.error("Document store check failed (%s): %s", element, e)
            raise StoreUnreachable(
                f"Document store rejected the connection ({code})",
                details={"element": element, "region": self.region},
            ) from e
        except BotoCoreError as e:
            logger.error("Document store unreachable: %s", e)
            raise StoreUnreachable(
                "Document store is unreachable",
                details={
                    "element": "database",
                    "region": self.region,
                    "endpoint": self.endpoint_url,
                },
            ) from e

    def _verify_table(self, element: str) -> None:
        name = self.table_names[element]
        try:
            self._client.describe_table(TableName=name)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code == "ResourceNotFoundException":
                message = f"{element.capitalize()} table '{name}' does not exist"
            else:
                message = f"{element.capitalize()} table '{name}' cannot be read ({code})"
            logger.error("Table check failed for %s: %s", name, e)
            raise StoreUnreachable(
                message, details={"element": element, "table": name}
            ) from e
        except BotoCoreError as e:
            logger.error("Table check failed for %s: %s", name, e)
            raise StoreUnreachable(
                f"{element.capitalize()} table '{name}' cannot be reached",
                details={"element": element, "table": name},
            ) from e

    @contextmanager
    def _store_call(
        self, element: str, action: str, photo_id: Optional[str] = None
    ) -> Iterator[None]:
        self.verify()
        try:
            yield
        except (ClientError, BotoCoreError) as e:
            name = self.table_names[element]
            details = {"element": element, "table": name}
            if photo_id is not None:
                details["photoId"] = photo_id
            logger.error(
                "%s failed on table %s (photo %s): %s", action, name, photo_id, e
            )
            raise StoreUnreachable(f"Failed to {action}", details=details) from e

    def _collect(self, operation, **kwargs) -> list[dict]:
        items: list[dict] = []
        while True:
            response = operation(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def _put_new(self, element: str, item: dict, action: str) -> None:
        with self._store_call(element, action, item.get("photoId", item["id"])):
            try:
                self._table(element).put_item(
                    Item=item, ConditionExpression="attribute_not_exists(id)"
                )
            except ClientError as e:
                code = e.response.get("Error", {}).get("Code", "")
                if code == "ConditionalCheckFailedException":
                    raise Conflict(
                        f"{element[:-1].capitalize()} already exists",
                        details={"id": item["id"]},
                    ) from e
                raise

    def list_photos(self) -> list[Photo]:
        with self._store_call("photos", "list photos"):
            items = self._collect(self._table("photos").scan)
        return newest_first([Photo.from_item(item) for item in items])

    def get_photo(self, photo_id: str) -> Optional[Photo]:
        with self._store_call("photos", "get photo", photo_id):
            response = self._table("photos").get_item(Key={"id": photo_id})
        item = response.get("Item")
        return Photo.from_item(item) if item else None

    def create_photo(self, photo: Photo) -> Photo:
        self._put_new("photos", photo.as_dict(), "create photo")
        return photo

    def list_comments(self, photo_id: str) -> list[Comment]:
        with self._store_call("comments", "get comments", photo_id):
            items = self._collect(
                self._table("comments").query,
                KeyConditionExpression=Key("photoId").eq(photo_id),
            )
        return newest_first([Comment.from_item(item) for item in items])

    def add_comment(self, comment: Comment) -> Comment:
        self._put_new("comments", comment.as_dict(), "add comment")
        return comment

    def upsert_rating(self, rating: Rating) -> Rating:
        with self._store_call("ratings", "save rating", rating.photo_id):
            self._table("ratings").put_item(Item=rating.as_dict())
        return rating

    def list_rating_values(self, photo_id: str) -> list[Any]:
        with self._store_call("ratings", "get ratings", photo_id):
            items = self._collect(
                self._table("ratings").query,
                KeyConditionExpression=Key("photoId").eq(photo_id),
                ProjectionExpression="#v",
                ExpressionAttributeNames={"#v": "value"},
            )
        values = []
        for item in items:
            if "value" not in item:
                logger.warning("Skipping rating without a value for photo %s", photo_id)
                continue
            value = coerce_rating_value(item["value"])
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                logger.warning(
                    "Non-numeric rating value %r for photo %s", value, photo_id
                )
            values.append(value)
        return values
