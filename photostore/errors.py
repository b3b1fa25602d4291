"""
Error types raised by the photo engagement backend.

Every error carries a human-readable message, an HTTP status classification
and optional details; the app renders them as structured JSON responses.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class PhotoStoreError(Exception):
    """Base class for all errors surfaced to API callers."""

    kind = "Error"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"message": self.message, "error": self.kind, "details": self.details}


class ConfigurationMissing(PhotoStoreError):
    """A required store/bucket identifier or credential is absent."""

    kind = "ConfigurationMissing"
    status_code = 500


class StoreUnreachable(PhotoStoreError):
    """The database or one of its collections cannot be read."""

    kind = "StoreUnreachable"
    status_code = 503


class InvalidInput(PhotoStoreError):
    kind = "InvalidInput"
    status_code = 400


class UploadFailed(PhotoStoreError):
    """Object storage rejected the write."""

    kind = "UploadFailed"
    status_code = 502


class NotFound(PhotoStoreError):
    kind = "NotFound"
    status_code = 404


class Conflict(PhotoStoreError):
    """A document with the same id already exists."""

    kind = "Conflict"
    status_code = 409


class Unauthorized(PhotoStoreError):
    kind = "Unauthorized"
    status_code = 401
