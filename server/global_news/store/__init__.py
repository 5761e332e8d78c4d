"""
global_news.store — Article persistence.

Public API:
    ArticleStore         — protocol every adapter implements
    ArticleFilter        — exact-match + time-range query conditions
    ArticleCursor        — chainable sort/skip/limit over a query
    FindOptions          — the sort and paging a cursor hands to its store
    RedisArticleStore    — Redis-backed adapter
    InMemoryArticleStore — dict-backed adapter for dev mode and tests
"""
from .base import (
    ASCENDING,
    DESCENDING,
    ArticleCursor,
    ArticleFilter,
    ArticleStore,
    DeleteResult,
    FindOptions,
    InsertResult,
    UpdateResult,
)
from .memory import InMemoryArticleStore
from .redis_store import RedisArticleStore

__all__ = [
    "ASCENDING",
    "DESCENDING",
    "ArticleCursor",
    "ArticleFilter",
    "ArticleStore",
    "DeleteResult",
    "FindOptions",
    "InMemoryArticleStore",
    "InsertResult",
    "RedisArticleStore",
    "UpdateResult",
]
