"""
News Data Models

Article document plus the small enums the feed layer filters on.
Articles are frozen dataclasses; edits produce a new instance.
"""
from __future__ import annotations

import os
import re
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

# Sentinel accepted for category / region meaning "do not filter"
ALL = "All"

_ARTICLE_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def new_article_id() -> str:
    """
    Generate a 24-hex-char identifier.

    Layout matches a document-database object id: 4 bytes of big-endian
    epoch seconds followed by 8 random bytes.
    """
    seconds = int(time.time()) & 0xFFFFFFFF
    return seconds.to_bytes(4, "big").hex() + os.urandom(8).hex()


def is_valid_article_id(value: Any) -> bool:
    """True when value is a well-formed 24-hex-char identifier."""
    return isinstance(value, str) and bool(_ARTICLE_ID_RE.match(value))


class DateBucket(str, Enum):
    """Recency window accepted by the feed."""

    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"

    @classmethod
    def from_string(cls, value: str) -> Optional["DateBucket"]:
        """Convert string to DateBucket, returning None if not recognised."""
        for member in cls:
            if member.value == value:
                return member
        return None


# Wire key -> Article attribute, for the fields an edit may replace
EDITABLE_FIELDS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "image": "image",
    "category": "category",
    "region": "region",
    "author": "author",
    "isLive": "is_live",
    "breaking_news": "breaking_news",
    "popular_news": "popular_news",
}

_BOOL_FIELDS = frozenset({"is_live", "breaking_news", "popular_news"})

# Never replaced by an edit patch
PROTECTED_KEYS = frozenset({"_id", "timestamp"})


@dataclass(frozen=True)
class Article:
    """
    A published news article.

    `id` and `timestamp` are None until the article has been persisted.
    Keys outside the known schema ride along in `extra` untouched.
    """

    title: str = ""
    description: str = ""
    image: str = ""
    category: str = ""
    region: str = ""
    author: str = ""

    is_live: bool = False
    breaking_news: bool = False
    popular_news: bool = False

    id: Optional[str] = None
    timestamp: Optional[datetime] = None

    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate fields."""
        if self.id is not None and not is_valid_article_id(self.id):
            raise ValueError(f"id must be a 24-hex-char token, got {self.id!r}")
        if self.timestamp is not None and self.timestamp.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")

    def with_patch(self, patch: dict[str, Any]) -> tuple["Article", bool]:
        """
        Apply an edit patch keyed by wire names.

        Returns the patched article and whether anything changed.
        `_id` and `timestamp` are ignored.
        """
        changes: dict[str, Any] = {}
        extra = dict(self.extra)

        for key, value in patch.items():
            if key in PROTECTED_KEYS:
                continue
            attr = EDITABLE_FIELDS.get(key)
            if attr is None:
                extra[key] = value
                continue
            changes[attr] = bool(value) if attr in _BOOL_FIELDS else value

        if extra != self.extra:
            changes["extra"] = extra

        updated = replace(self, **changes) if changes else self
        return updated, updated != self
