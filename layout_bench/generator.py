"""
Deterministic synthetic user records for the storage layout benchmark.

Every field except the identifier and the creation timestamp is a pure
function of the 1-based sequence index ``i``, so two runs over the same
index range produce the same content. ``populate`` writes a run of records into
a storage backend one insert at a time.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from layout_bench.domain.errors import StorageError
from layout_bench.domain.models import (
    FIXED_TIMESTAMP,
    Accessibility,
    Achievement,
    ComplexProfile,
    ComplexUser,
    ExtendedPreferences,
    Metadata,
    Preferences,
    RawRecord,
    Representation,
    SimpleUser,
    Statistics,
    User,
    UserProfile,
    Variant,
    to_document,
    to_flat_row,
)
from layout_bench.storage.abstract import StorageBackend
from layout_bench.utils.logging import get_logger

log = get_logger(__name__)

COMPLEX_BIO = (
    "Complex bio for user {i} with very long description that includes multiple "
    "sentences and various details about their background, interests, and activities."
)


def _theme(i: int) -> str:
    return "dark" if i % 2 == 0 else "light"


def _language(i: int) -> str:
    return {0: "ja", 1: "en"}.get(i % 3, "es")


def _notifications(i: int) -> str:
    return "true" if i % 4 == 0 else "false"


def _avatar_url(i: int) -> Optional[str]:
    return f"https://example.com/avatar{i}.jpg" if i % 3 == 0 else None


def _tags(i: int) -> List[str]:
    return [
        f"tag_{i}",
        f"category_{i % 10}",
        "active" if i % 2 == 0 else "inactive",
        "verified" if i % 3 == 0 else "unverified",
    ]


def _simple(i: int, created_at: datetime) -> SimpleUser:
    return SimpleUser(
        id=uuid.uuid4().hex,
        name=f"User {i}",
        email=f"user{i}@example.com",
        age=20 + i % 60,
        profile=UserProfile(
            bio=f"Bio for user {i}",
            avatar_url=_avatar_url(i),
            preferences=Preferences(
                theme=_theme(i), language=_language(i), notifications=_notifications(i)
            ),
            social_links=[
                f"https://twitter.com/user{i}",
                f"https://github.com/user{i}",
            ],
        ),
        created_at=created_at,
    )


def _complex(i: int, created_at: datetime) -> ComplexUser:
    preferences = ExtendedPreferences(
        theme=_theme(i),
        language=_language(i),
        notifications=_notifications(i),
        timezone="Asia/Tokyo",
        currency="JPY",
        date_format="YYYY-MM-DD",
        time_format="24h",
        accessibility=Accessibility(
            high_contrast=i % 2 == 0, screen_reader=i % 3 == 0, font_size="medium"
        ),
    )
    achievements = [
        Achievement(
            id=f"achievement_{i}",
            name=f"Achievement {i}",
            description=f"Description for achievement {i}",
            earned_at=FIXED_TIMESTAMP,
            points=100 + i * 10,
        ),
        Achievement(
            id=f"achievement_{i}_2",
            name=f"Special Achievement {i}",
            description=f"Special description for achievement {i}",
            earned_at=FIXED_TIMESTAMP + timedelta(hours=1),
            points=200 + i * 15,
        ),
    ]
    statistics = Statistics(
        posts_count=100 + i * 5,
        followers_count=500 + i * 20,
        following_count=200 + i * 10,
        likes_received=1000 + i * 50,
        comments_made=50 + i * 3,
    )
    return ComplexUser(
        id=uuid.uuid4().hex,
        name=f"Complex User {i}",
        email=f"complex.user{i}@example.com",
        age=20 + i % 60,
        profile=ComplexProfile(
            bio=COMPLEX_BIO.format(i=i),
            avatar_url=_avatar_url(i),
            preferences=preferences,
            social_links=[
                f"https://twitter.com/complex_user{i}",
                f"https://github.com/complex_user{i}",
                f"https://linkedin.com/in/complex_user{i}",
                f"https://facebook.com/complex_user{i}",
            ],
            achievements=achievements,
            statistics=statistics,
        ),
        metadata=Metadata(
            created_at=FIXED_TIMESTAMP,
            last_login=FIXED_TIMESTAMP + timedelta(hours=13),
            login_count=100 + i,
            is_verified=i % 5 == 0,
            is_premium=i % 7 == 0,
            tags=_tags(i),
        ),
        created_at=created_at,
    )


def synthesize(i: int, variant: Variant, created_at: Optional[datetime] = None) -> User:
    """
    Build the typed record for sequence index ``i`` (1-based).

    ``created_at`` defaults to the current UTC time.
    """
    if i < 1:
        raise ValueError(f"sequence index must be >= 1, got {i}")
    stamp = created_at or datetime.now(timezone.utc)
    if Variant(variant) is Variant.COMPLEX:
        return _complex(i, stamp)
    return _simple(i, stamp)


def generate(i: int, variant: Variant, representation: Representation) -> RawRecord:
    """
    Build the storage form of record ``i``.

    Flat rows carry the current time as ``created_at``; document bodies embed the
    fixed literal timestamp, the backend stamps the row itself on insert.
    """
    if Representation(representation) is Representation.FLAT:
        return to_flat_row(synthesize(i, variant))
    return to_document(synthesize(i, variant, created_at=FIXED_TIMESTAMP))


@dataclass
class GenerationReport:
    """Outcome of a bulk insert run."""

    variant: str
    representation: str
    requested: int
    inserted: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "variant": self.variant,
            "representation": self.representation,
            "requested": self.requested,
            "inserted": self.inserted,
            "failed": self.failed,
        }


def populate(
    backend: StorageBackend,
    variant: Variant,
    representation: Representation,
    count: int,
    start: int = 1,
    stop_on_error: bool = False,
) -> GenerationReport:
    """
    Insert ``count`` synthesized records, indices ``start .. start + count - 1``.

    Parameters
    ----------
    backend : StorageBackend
        Destination store.
    variant : Variant
        Simple or complex record content.
    representation : Representation
        Flat rows or documents.
    count : int
        Number of records to write.
    start : int
        First sequence index.
    stop_on_error : bool
        Propagate the first StorageError instead of counting it and moving on.

    Returns
    -------
    GenerationReport
        Insert and failure counts. Write failures are never retried.
    """
    variant = Variant(variant)
    representation = Representation(representation)
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    report = GenerationReport(
        variant=variant.value, representation=representation.value, requested=count
    )
    log.info(
        f"[GENERATE START] {count} {variant.value} records -> {representation.value}",
        extra={"variant": variant.value, "representation": representation.value, "count": count},
    )
    for i in range(start, start + count):
        record = generate(i, variant, representation)
        try:
            backend.insert(representation, record)
        except StorageError as exc:
            if stop_on_error:
                raise
            report.failed += 1
            if len(report.errors) < 10:
                report.errors.append(str(exc))
            log.warning(
                f"[GENERATE FAILED] index {i}",
                extra={"index": i, "representation": representation.value, "error": str(exc)},
            )
            continue
        report.inserted += 1

    log.info(
        f"[GENERATE COMPLETE] {report.inserted}/{count} inserted",
        extra=report.as_dict(),
    )
    return report


__all__ = ["COMPLEX_BIO", "GenerationReport", "generate", "populate", "synthesize"]
