"""
Engagement service: validates inputs and composes the repository with the
rating aggregator into the public operations.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from photostore import validation
from photostore.db import Comment, MetadataRepository, Photo, Rating, now_iso
from photostore.errors import NotFound
from photostore.ratings import RatingSummary, rating_doc_id, summarize
from photostore.storage import ObjectRef

logger = logging.getLogger(__name__)


class EngagementService:
    """
    Stateless orchestration over a MetadataRepository.

    Referential integrity is not checked: comments and ratings for a photo
    id that does not exist are stored like any other.
    """

    def __init__(
        self,
        repository: MetadataRepository,
        *,
        author_max_length: int = validation.DEFAULT_AUTHOR_MAX_LENGTH,
    ):
        self.repository = repository
        self.author_max_length = author_max_length

    def _author(self, value: Optional[str]) -> str:
        return validation.normalize_author(value, self.author_max_length)

    def list_photos(self) -> list[Photo]:
        return self.repository.list_photos()

    def get_photo(self, photo_id: str) -> Photo:
        photo = self.repository.get_photo(photo_id)
        if photo is None:
            raise NotFound("Photo not found", details={"photoId": photo_id})
        return photo

    def create_photo(
        self,
        object_ref: ObjectRef,
        title: Optional[str] = None,
        caption: Optional[str] = None,
        location: Optional[str] = None,
        people: Optional[str] = None,
    ) -> Photo:
        """Record metadata for an image that is already in object storage."""
        photo = Photo(
            id=str(uuid.uuid4()),
            image_url=object_ref.url,
            blob_name=object_ref.stored_name,
            title=validation.clean_text(title),
            caption=validation.clean_text(caption),
            location=validation.clean_text(location),
            people=validation.split_people(people),
            created_at=now_iso(),
        )
        self.repository.create_photo(photo)
        logger.info("Created photo %s (%s)", photo.id, photo.blob_name)
        return photo

    def list_comments(self, photo_id: str) -> list[Comment]:
        return self.repository.list_comments(validation.require_photo_id(photo_id))

    def add_comment(
        self, photo_id: str, author: Optional[str], text: Optional[str]
    ) -> Comment:
        comment = Comment(
            id=str(uuid.uuid4()),
            photo_id=validation.require_photo_id(photo_id),
            author=self._author(author),
            text=validation.require_comment_text(text),
            created_at=now_iso(),
        )
        return self.repository.add_comment(comment)

    def upsert_rating(
        self, photo_id: str, author: Optional[str], value: Any
    ) -> RatingSummary:
        """
        Store the author's rating, replacing any earlier one, and return the
        recomputed summary for the photo.
        """
        photo_id = validation.require_photo_id(photo_id)
        score = validation.parse_rating_value(value)
        normalized = self._author(author)
        rating = Rating(
            id=rating_doc_id(photo_id, normalized),
            photo_id=photo_id,
            author=normalized,
            value=score,
            created_at=now_iso(),
        )
        self.repository.upsert_rating(rating)
        return self.get_rating_summary(photo_id)

    def get_rating_summary(self, photo_id: str) -> RatingSummary:
        photo_id = validation.require_photo_id(photo_id)
        return summarize(photo_id, self.repository.list_rating_values(photo_id))
