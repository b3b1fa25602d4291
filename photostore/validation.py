"""
Input normalization and validation for photos, comments and ratings.

Each helper returns a cleaned value or raises InvalidInput; nothing here
touches the store, so a rejected payload never causes a partial write.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional

from photostore.errors import InvalidInput

ANONYMOUS_AUTHOR = "anonymous"
DEFAULT_AUTHOR_MAX_LENGTH = 40
MIN_RATING = 1
MAX_RATING = 5

_WHITESPACE_RUN = re.compile(r"\s+")


def clean_text(value: Optional[str]) -> str:
    return (value or "").strip()


def normalize_author(
    value: Optional[str], max_length: int = DEFAULT_AUTHOR_MAX_LENGTH
) -> str:
    """
    Trim, collapse internal whitespace and cap the length of an author name.

    Blank names become "anonymous". Case is preserved, so "Alice" and
    "alice" are different authors.
    """
    collapsed = _WHITESPACE_RUN.sub(" ", value or "").strip()
    if not collapsed:
        return ANONYMOUS_AUTHOR
    return collapsed[:max_length].rstrip()


def split_people(value: Optional[str]) -> list[str]:
    """Split a comma-separated list of names, dropping empty segments."""
    raw = clean_text(value)
    if not raw:
        return []
    return [name.strip() for name in raw.split(",") if name.strip()]


def require_comment_text(value: Optional[str]) -> str:
    text = clean_text(value)
    if not text:
        raise InvalidInput("Comment text is required", details={"field": "text"})
    return text


def require_photo_id(value: Optional[str]) -> str:
    photo_id = clean_text(value)
    if not photo_id:
        raise InvalidInput("Photo id is required", details={"field": "photoId"})
    return photo_id


def parse_rating_value(value: Any) -> int:
    """
    Accept an integer rating in 1..5.

    Integral floats (4.0) and integer strings ("4") are accepted; booleans,
    fractions and anything out of range are rejected.
    """
    parsed: Optional[int] = None
    if isinstance(value, bool):
        parsed = None
    elif isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            parsed = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if re.fullmatch(r"[+-]?\d+", stripped):
            parsed = int(stripped)

    if parsed is None or not MIN_RATING <= parsed <= MAX_RATING:
        raise InvalidInput(
            f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}",
            details={"field": "value", "value": _safe_repr(value)},
        )
    return parsed


def _safe_repr(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return repr(value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return repr(value)
