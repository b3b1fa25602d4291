"""
HTTP routes for the photo engagement API.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, File, Form, Header, UploadFile
from fastapi.concurrency import run_in_threadpool

from photostore.config import Settings, get_settings
from photostore.db import now_iso
from photostore.dependencies import get_engagement_service, get_storage_client
from photostore.errors import InvalidInput, Unauthorized
from photostore.schemas import (
    AddCommentResponse,
    CommentRequest,
    CommentResponse,
    HealthResponse,
    PhotoResponse,
    RatingRequest,
    RatingResponse,
    RatingSummaryResponse,
    UploadPhotoResponse,
)
from photostore.service import EngagementService
from photostore.storage import StorageClient, make_object_name

logger = logging.getLogger(__name__)

router = APIRouter()


def require_upload_key(
    x_upload_key: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Check the shared upload secret when one is configured."""
    expected = settings.upload_key
    if not expected:
        return
    if not x_upload_key or not hmac.compare_digest(
        x_upload_key.encode("utf-8"), expected.encode("utf-8")
    ):
        raise Unauthorized("Invalid upload key")


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(ok=True, time=now_iso())


@router.get("/photos", response_model=list[PhotoResponse])
def list_photos(service: EngagementService = Depends(get_engagement_service)):
    return [photo.as_dict() for photo in service.list_photos()]


@router.post(
    "/photos",
    response_model=UploadPhotoResponse,
    status_code=201,
    dependencies=[Depends(require_upload_key)],
)
async def upload_photo(
    image: UploadFile | None = File(None),
    title: str | None = Form(None),
    caption: str | None = Form(None),
    location: str | None = Form(None),
    people: str | None = Form(None),
    service: EngagementService = Depends(get_engagement_service),
    storage: StorageClient = Depends(get_storage_client),
):
    """
    Store the image bytes, then record the photo metadata.

    The two writes are not atomic: a metadata failure leaves the object in
    storage.
    """
    if image is None:
        raise InvalidInput(
            "No image received. Field name must be 'image'.",
            details={"field": "image"},
        )

    data = await image.read()
    key = make_object_name(image.filename)
    content_type = image.content_type or "application/octet-stream"
    object_ref = await run_in_threadpool(storage.upload_bytes, data, key, content_type)
    photo = await run_in_threadpool(
        service.create_photo,
        object_ref,
        title=title,
        caption=caption,
        location=location,
        people=people,
    )
    return UploadPhotoResponse(message="Upload successful", photo=photo.as_dict())


@router.get("/photos/{photo_id}", response_model=PhotoResponse)
def get_photo(
    photo_id: str, service: EngagementService = Depends(get_engagement_service)
):
    return service.get_photo(photo_id).as_dict()


@router.get("/photos/{photo_id}/comments", response_model=list[CommentResponse])
def list_comments(
    photo_id: str, service: EngagementService = Depends(get_engagement_service)
):
    return [comment.as_dict() for comment in service.list_comments(photo_id)]


@router.post(
    "/photos/{photo_id}/comments",
    response_model=AddCommentResponse,
    status_code=201,
)
def add_comment(
    photo_id: str,
    payload: CommentRequest,
    service: EngagementService = Depends(get_engagement_service),
):
    comment = service.add_comment(photo_id, payload.author, payload.text)
    return AddCommentResponse(message="Comment added", comment=comment.as_dict())


@router.put("/photos/{photo_id}/ratings", response_model=RatingResponse)
def upsert_rating(
    photo_id: str,
    payload: RatingRequest,
    service: EngagementService = Depends(get_engagement_service),
):
    summary = service.upsert_rating(photo_id, payload.author, payload.value)
    return summary.as_dict(include_distribution=False)


@router.get("/photos/{photo_id}/ratings", response_model=RatingSummaryResponse)
def get_rating_summary(
    photo_id: str, service: EngagementService = Depends(get_engagement_service)
):
    return service.get_rating_summary(photo_id).as_dict()
