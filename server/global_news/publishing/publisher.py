"""
News Publisher

Write side of the service. Given a new article payload it:
  1. Stamps a timestamp                 (strictly increasing per process)
  2. Persists it in the article store   (ArticleStore.insert_one)
  3. Announces it to every live viewer  (BroadcastHub.broadcast_article)

If step 2 fails nothing is broadcast and the StoreUnavailableError goes
back to the caller. Edits and deletes go through here too; they are not
broadcast.

Usage:
    publisher = NewsPublisher(store, hub)
    result = await publisher.publish({"title": "...", "isLive": True})
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from global_news.core.types import (
    InvalidActionError,
    InvalidArgumentError,
    NotFoundError,
    StoreUnavailableError,
)
from global_news.models.news import is_valid_article_id
from global_news.serializer import article_from_dict
from global_news.store.base import ArticleStore, DeleteResult, InsertResult, UpdateResult
from global_news.ws_server.hub import BroadcastHub

logger = logging.getLogger(__name__)

__all__ = ["NewsPublisher"]

EDIT = "edit"
DELETE = "delete"

_ONE_TICK = timedelta(microseconds=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NewsPublisher:
    """
    Persists articles and triggers the live broadcast.

    Args:
        store: ArticleStore that receives the writes.
        hub:   BroadcastHub that announces new articles.
        clock: Returns the current aware time; injectable for tests.
    """

    def __init__(
        self,
        store: ArticleStore,
        hub: BroadcastHub,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._hub = hub
        self._clock = clock
        self._last_timestamp: Optional[datetime] = None
        self._published = 0

    @property
    def published_count(self) -> int:
        return self._published

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + _ONE_TICK
        self._last_timestamp = now
        return now

    async def publish(self, payload: dict[str, Any]) -> InsertResult:
        """
        Stamp, persist and broadcast a new article.

        Any `_id` or `timestamp` in the payload is discarded.

        Raises:
            StoreUnavailableError: If the store write fails (nothing is broadcast).
        """
        fields = {k: v for k, v in payload.items() if k not in ("_id", "timestamp")}
        article = replace(article_from_dict(fields), timestamp=self._next_timestamp())

        try:
            result = await self._store.insert_one(article)
        except StoreUnavailableError as e:
            logger.error(
                f"Failed to persist article: {e}",
                extra={"title": article.title, "error": str(e)},
            )
            raise

        published = replace(article, id=result.inserted_id)
        self._published += 1

        delivered = await self._hub.broadcast_article(published)
        logger.info(
            f"{'[LIVE] ' if published.is_live else ''}{str(published.title)[:100]}",
            extra={"news_id": published.id, "viewers": delivered},
        )
        return result

    async def update_article(self, article_id: str, patch: Any) -> UpdateResult:
        """
        Replace the given fields of one article.

        Raises:
            InvalidArgumentError: Malformed id, or patch is not an object.
            NotFoundError: No article has that id.
        """
        if not is_valid_article_id(article_id):
            raise InvalidArgumentError("Invalid news ID", field="id", value=article_id)
        if not isinstance(patch, dict):
            raise InvalidArgumentError(
                "updatedArticle must be an object", field="updatedArticle", value=patch
            )

        result = await self._store.update_one(article_id, patch)
        if result.matched_count == 0:
            raise NotFoundError("News not found", key=article_id)
        return result

    async def delete_article(self, article_id: str) -> DeleteResult:
        """
        Physically remove one article.

        Raises:
            InvalidArgumentError: Malformed id.
            NotFoundError: No article has that id.
        """
        if not is_valid_article_id(article_id):
            raise InvalidArgumentError("Invalid news ID", field="id", value=article_id)

        result = await self._store.delete_one(article_id)
        if result.deleted_count == 0:
            raise NotFoundError("News not found", key=article_id)
        logger.info(f"Deleted article {article_id}")
        return result

    async def apply_action(
        self,
        article_id: str,
        action: Any,
        updated_article: Any = None,
    ) -> UpdateResult | DeleteResult:
        """
        Dispatch the edit-or-delete request body of PATCH /news/{id}.

        Raises:
            InvalidActionError: action is neither "edit" nor "delete".
        """
        if action == DELETE:
            return await self.delete_article(article_id)
        if action == EDIT:
            return await self.update_article(article_id, updated_article)
        raise InvalidActionError("Invalid action", action=action)
