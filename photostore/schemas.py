"""
Pydantic schemas for the photo engagement API.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PhotoResponse(BaseModel):
    id: str
    imageUrl: str
    blobName: str
    title: str
    caption: str
    location: str
    people: list[str]
    createdAt: str


class UploadPhotoResponse(BaseModel):
    message: str
    photo: PhotoResponse


class CommentRequest(BaseModel):
    author: Optional[str] = Field(default=None, max_length=1024)
    text: Optional[str] = Field(default=None, max_length=4096)


class CommentResponse(BaseModel):
    id: str
    photoId: str
    author: str
    text: str
    createdAt: str


class AddCommentResponse(BaseModel):
    message: str
    comment: CommentResponse


class RatingRequest(BaseModel):
    author: Optional[str] = Field(default=None, max_length=1024)
    # Left untyped so the service decides what counts as an integer rating.
    value: Any = None


class RatingResponse(BaseModel):
    photoId: str
    average: float
    count: int


class RatingSummaryResponse(RatingResponse):
    distribution: Dict[str, int]


class HealthResponse(BaseModel):
    ok: bool
    time: str
