"""
In-Memory Article Store

Dict-backed ArticleStore for development (main.py --memory) and tests.
State lives for the lifetime of the process.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from global_news.models.news import Article, new_article_id
from global_news.store.base import (
    ArticleCursor,
    ArticleFilter,
    DeleteResult,
    FindOptions,
    InsertResult,
    UpdateResult,
    apply_options,
)

logger = logging.getLogger(__name__)


class InMemoryArticleStore:
    """ArticleStore kept in a plain dict keyed by article id."""

    def __init__(self) -> None:
        self._articles: dict[str, Article] = {}

    async def connect(self) -> None:
        logger.info("Using in-memory article store")

    async def close(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self._articles)

    async def insert_one(self, article: Article) -> InsertResult:
        article_id = new_article_id()
        while article_id in self._articles:
            article_id = new_article_id()

        stored = replace(
            article,
            id=article_id,
            timestamp=article.timestamp or datetime.now(timezone.utc),
        )
        self._articles[article_id] = stored
        return InsertResult(inserted_id=article_id)

    async def find_one(self, article_id: str) -> Article | None:
        return self._articles.get(article_id)

    def find(self, article_filter: ArticleFilter | None = None) -> ArticleCursor:
        return ArticleCursor(self._fetch, article_filter or ArticleFilter())

    async def _fetch(self, article_filter: ArticleFilter, options: FindOptions) -> list[Article]:
        matched = [a for a in self._articles.values() if article_filter.matches(a)]
        return apply_options(matched, options)

    async def update_one(self, article_id: str, patch: dict[str, Any]) -> UpdateResult:
        current = self._articles.get(article_id)
        if current is None:
            return UpdateResult(matched_count=0, modified_count=0)

        updated, changed = current.with_patch(patch)
        if changed:
            self._articles[article_id] = updated
        return UpdateResult(matched_count=1, modified_count=int(changed))

    async def delete_one(self, article_id: str) -> DeleteResult:
        removed = self._articles.pop(article_id, None)
        return DeleteResult(deleted_count=0 if removed is None else 1)
