"""
Rating aggregation and rating document identity.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Union

from photostore.validation import MAX_RATING, MIN_RATING

Number = Union[int, float, Decimal]

RATING_BUCKETS = tuple(range(MIN_RATING, MAX_RATING + 1))

# Fixed namespace so rating ids are stable across processes and deployments.
RATING_ID_NAMESPACE = uuid.UUID("6f1c3c2e-8a4b-5d7e-9f10-2b3c4d5e6f70")


def rating_doc_id(photo_id: str, author: str) -> str:
    """
    Deterministic document id for the rating of `author` on `photo_id`.

    The pair is JSON-encoded before hashing so no choice of characters in
    either part can make two different pairs collide.
    """
    name = json.dumps([photo_id, author], ensure_ascii=False)
    return str(uuid.uuid5(RATING_ID_NAMESPACE, name))


def _to_decimal(value: Number) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("NaN")


def bucket_for(value: Number) -> int:
    """Round half away from zero, then clamp into 1..5."""
    number = _to_decimal(value)
    if number.is_nan():
        return MIN_RATING
    if number.is_infinite():
        return MAX_RATING if number > 0 else MIN_RATING
    rounded = number.to_integral_value(rounding=ROUND_HALF_UP)
    return int(min(max(rounded, MIN_RATING), MAX_RATING))


@dataclass
class RatingSummary:
    photo_id: str
    count: int = 0
    average: float = 0
    distribution: Dict[int, int] = field(
        default_factory=lambda: {bucket: 0 for bucket in RATING_BUCKETS}
    )

    def as_dict(self, include_distribution: bool = True) -> dict:
        payload = {
            "photoId": self.photo_id,
            "average": self.average,
            "count": self.count,
        }
        if include_distribution:
            payload["distribution"] = {
                str(bucket): self.distribution[bucket] for bucket in RATING_BUCKETS
            }
        return payload


def summarize(photo_id: str, values: Iterable[Any]) -> RatingSummary:
    """
    Count, mean and 1..5 distribution over raw rating values.

    The average is 0 (never NaN) when there are no values, and every bucket
    is present in the distribution even when empty. A non-finite value
    counts toward the mean as its bucket.
    """
    summary = RatingSummary(photo_id=photo_id)
    total = Decimal(0)
    for value in values:
        number = _to_decimal(value)
        bucket = bucket_for(value)
        summary.count += 1
        total += number if number.is_finite() else Decimal(bucket)
        summary.distribution[bucket] += 1
    if summary.count:
        summary.average = float(total / summary.count)
    return summary
