"""
Domain models for the storage layout benchmark.

Defines the user record schema in its two variants (simple and complex) and the
codecs that move a record between its typed form and the two storage
representations:

- flat: one column per attribute, with ``preferences`` and ``social_links``
  stored as JSON text columns;
- document: the whole record serialized as a single JSON text.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from layout_bench.domain.errors import ParseError

FIXED_TIMESTAMP = datetime(2024, 8, 30, 8, 0, 0, tzinfo=timezone.utc)

FLAT_COLUMNS = (
    "id",
    "name",
    "email",
    "age",
    "bio",
    "avatar_url",
    "preferences",
    "social_links",
    "created_at",
)

_FROZEN = {"frozen": True, "populate_by_name": True}


class Variant(str, Enum):
    """Which optional sub-structures a generated record carries."""

    SIMPLE = "simple"
    COMPLEX = "complex"


class Representation(str, Enum):
    """Storage layout a record is written in."""

    FLAT = "flat"
    DOCUMENT = "document"


class Preferences(BaseModel):
    theme: str
    language: str
    notifications: str

    model_config = _FROZEN


class Accessibility(BaseModel):
    high_contrast: bool
    screen_reader: bool
    font_size: str

    model_config = _FROZEN


class ExtendedPreferences(Preferences):
    timezone: str
    currency: str
    date_format: str
    time_format: str
    accessibility: Accessibility


class Achievement(BaseModel):
    id: str
    name: str
    description: str
    earned_at: datetime
    points: int

    model_config = _FROZEN


class Statistics(BaseModel):
    posts_count: int
    followers_count: int
    following_count: int
    likes_received: int
    comments_made: int

    model_config = _FROZEN


class UserProfile(BaseModel):
    bio: str
    avatar_url: Optional[str] = None
    preferences: Preferences
    social_links: List[str] = Field(default_factory=list)

    model_config = _FROZEN


class ComplexProfile(UserProfile):
    preferences: ExtendedPreferences
    achievements: List[Achievement] = Field(default_factory=list)
    statistics: Statistics


class Metadata(BaseModel):
    created_at: datetime
    last_login: datetime
    login_count: int
    is_verified: bool
    is_premium: bool
    tags: List[str] = Field(default_factory=list)

    model_config = _FROZEN


class SimpleUser(BaseModel):
    """
    A user record carrying the base profile.
    """

    id: str = Field(..., description="Opaque unique identifier.")
    name: str
    email: str
    age: int
    profile: UserProfile
    created_at: datetime = Field(..., description="Record creation timestamp.")

    model_config = _FROZEN


class ComplexUser(SimpleUser):
    """
    A user record with extended preferences, achievements, statistics and metadata.
    """

    profile: ComplexProfile
    metadata: Metadata


User = Union[SimpleUser, ComplexUser]
RawRecord = Union[Dict[str, Any], str]


def to_flat_row(user: User) -> Dict[str, Any]:
    """Project a user onto the per-attribute columns of the flat layout."""
    profile = user.profile
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "age": user.age,
        "bio": profile.bio,
        "avatar_url": profile.avatar_url,
        "preferences": json.dumps(profile.preferences.model_dump(mode="json")),
        "social_links": json.dumps(list(profile.social_links)),
        "created_at": user.created_at,
    }


def from_flat_row(row: Mapping[str, Any]) -> SimpleUser:
    """
    Rebuild a typed user from a flat row.

    Raises
    ------
    ParseError
        If the JSON columns or any required attribute cannot be decoded.
    """
    try:
        preferences = json.loads(row["preferences"])
        social_links = json.loads(row["social_links"])
        return SimpleUser(
            id=str(row["id"]),
            name=row["name"],
            email=row["email"],
            age=row["age"],
            profile=UserProfile(
                bio=row["bio"],
                avatar_url=row.get("avatar_url"),
                preferences=Preferences.model_validate(preferences),
                social_links=social_links,
            ),
            created_at=row["created_at"],
        )
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        raise ParseError(f"flat row {row.get('id')!r} is not decodable: {exc}") from exc


def to_document(user: User) -> str:
    """Serialize the whole record as one JSON text."""
    return user.model_dump_json()


def from_document(raw: Union[str, bytes]) -> User:
    """
    Decode a stored document into its typed form.

    Documents carrying a ``metadata`` block decode as ComplexUser, everything
    else as SimpleUser.

    Raises
    ------
    ParseError
        If the text is not JSON, not an object, or does not match the schema.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"document is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ParseError(f"document top level is {type(payload).__name__}, expected object")
    model = ComplexUser if "metadata" in payload else SimpleUser
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ParseError(f"document does not match {model.__name__}: {exc}") from exc


__all__ = [
    "FIXED_TIMESTAMP",
    "FLAT_COLUMNS",
    "Accessibility",
    "Achievement",
    "ComplexProfile",
    "ComplexUser",
    "ExtendedPreferences",
    "Metadata",
    "Preferences",
    "RawRecord",
    "Representation",
    "SimpleUser",
    "Statistics",
    "User",
    "UserProfile",
    "Variant",
    "from_document",
    "from_flat_row",
    "to_document",
    "to_flat_row",
]
