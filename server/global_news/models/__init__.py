"""
Global News Data Models

Frozen dataclasses with validation.
"""
from global_news.models.news import (
    ALL,
    Article,
    DateBucket,
    EDITABLE_FIELDS,
    is_valid_article_id,
    new_article_id,
)

__all__ = [
    "ALL",
    "Article",
    "DateBucket",
    "EDITABLE_FIELDS",
    "is_valid_article_id",
    "new_article_id",
]
