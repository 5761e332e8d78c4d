"""
Redis Article Store

ArticleStore backed by Redis. Each article is a JSON document under its own
key; a sorted set scored by timestamp gives the time-ordered index that
feed queries range over.

Key layout:
  news:article:{id}   — JSON document (same shape as the HTTP payload)
  news:timeline       — ZSET, member = id, score = epoch seconds

Usage:
    store = RedisArticleStore(redis_url="redis://localhost:6379/0")
    await store.connect()
    result = await store.insert_one(article)
    await store.close()
"""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterator

from redis.asyncio import Redis
from redis.exceptions import RedisError

from global_news.core.types import StoreUnavailableError
from global_news.models.news import Article, new_article_id
from global_news.serializer import article_from_dict, article_to_dict
from global_news.store.base import (
    DESCENDING,
    ArticleCursor,
    ArticleFilter,
    DeleteResult,
    FindOptions,
    InsertResult,
    UpdateResult,
    apply_options,
)

logger = logging.getLogger(__name__)

ARTICLE_PREFIX = "news:article:"
TIMELINE = "news:timeline"

# Timeline ids read per round trip when a filter has to be applied client-side
SCAN_BATCH = 100


def article_key(article_id: str) -> str:
    return f"{ARTICLE_PREFIX}{article_id}"


@contextmanager
def _redis_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except RedisError as exc:
        raise StoreUnavailableError(
            f"Article store {operation} failed: {exc}", operation=operation
        ) from exc


class RedisArticleStore:
    """
    Stores article documents in Redis.

    Every RedisError is re-raised as StoreUnavailableError; nothing is retried.
    """

    def __init__(self, redis_url: str) -> None:
        self._redis_url = redis_url
        self._redis: Redis | None = None

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Open the Redis connection."""
        self._redis = Redis.from_url(self._redis_url, decode_responses=True)
        with _redis_errors("connect"):
            await self._redis.ping()
        logger.info(f"RedisArticleStore connected to Redis at {self._redis_url}")

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("RedisArticleStore disconnected from Redis")

    async def __aenter__(self) -> RedisArticleStore:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    @property
    def _client(self) -> Redis:
        if self._redis is None:
            raise StoreUnavailableError(
                "RedisArticleStore is not connected; call connect() first",
                operation="client",
            )
        return self._redis

    # ── Writes ────────────────────────────────────────────────────────────────

    async def insert_one(self, article: Article) -> InsertResult:
        client = self._client
        stored = replace(
            article,
            id=new_article_id(),
            timestamp=article.timestamp or datetime.now(timezone.utc),
        )
        document = json.dumps(article_to_dict(stored), default=str)

        # Document and timeline entry are written in one MULTI/EXEC
        pipe = client.pipeline(transaction=True)
        pipe.set(article_key(stored.id), document)
        pipe.zadd(TIMELINE, {stored.id: stored.timestamp.timestamp()})
        with _redis_errors("insert"):
            await pipe.execute()

        logger.debug(f"Inserted article {stored.id}")
        return InsertResult(inserted_id=stored.id)

    async def update_one(self, article_id: str, patch: dict[str, Any]) -> UpdateResult:
        current = await self.find_one(article_id)
        if current is None:
            return UpdateResult(matched_count=0, modified_count=0)

        updated, changed = current.with_patch(patch)
        if changed:
            with _redis_errors("update"):
                await self._client.set(
                    article_key(article_id),
                    json.dumps(article_to_dict(updated), default=str),
                )
        return UpdateResult(matched_count=1, modified_count=int(changed))

    async def delete_one(self, article_id: str) -> DeleteResult:
        pipe = self._client.pipeline(transaction=True)
        pipe.delete(article_key(article_id))
        pipe.zrem(TIMELINE, article_id)
        with _redis_errors("delete"):
            deleted, _ = await pipe.execute()
        return DeleteResult(deleted_count=int(deleted))

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def find_one(self, article_id: str) -> Article | None:
        with _redis_errors("find_one"):
            raw = await self._client.get(article_key(article_id))
        if raw is None:
            return None
        return article_from_dict(json.loads(raw))

    def find(self, article_filter: ArticleFilter | None = None) -> ArticleCursor:
        return ArticleCursor(self._fetch, article_filter or ArticleFilter())

    async def _fetch(self, article_filter: ArticleFilter, options: FindOptions) -> list[Article]:
        """
        Walk the timeline in the requested order and stop as soon as the
        page is filled.

        Time bounds become the ZSET score range. With no other condition
        skip/limit go straight to ZRANGEBYSCORE ... LIMIT; otherwise the
        timeline is read in batches and filtered until enough articles
        match. Sorting on anything but timestamp loads the whole range.
        """
        low, high = _score_range(article_filter)

        if options.sort_key not in (None, "timestamp"):
            ids = await self._range(low, high, descending=False)
            return apply_options(await self._load(ids, article_filter), options)

        descending = options.sort_key == "timestamp" and options.direction == DESCENDING

        if not article_filter.has_field_conditions:
            ids = await self._range(
                low,
                high,
                descending=descending,
                start=options.skip,
                num=options.limit or -1,
            )
            return await self._load(ids, article_filter)

        wanted = options.end
        batch = max(wanted or 0, SCAN_BATCH)
        matched: list[Article] = []
        offset = 0
        while True:
            ids = await self._range(low, high, descending=descending, start=offset, num=batch)
            matched.extend(await self._load(ids, article_filter))
            if len(ids) < batch or (wanted is not None and len(matched) >= wanted):
                break
            offset += batch
        return matched[options.skip:wanted]

    async def _range(
        self,
        low: float | str,
        high: float | str,
        *,
        descending: bool,
        start: int | None = None,
        num: int | None = None,
    ) -> list[str]:
        client = self._client
        with _redis_errors("find"):
            if descending:
                return await client.zrevrangebyscore(TIMELINE, high, low, start=start, num=num)
            return await client.zrangebyscore(TIMELINE, low, high, start=start, num=num)

    async def _load(self, ids: list[str], article_filter: ArticleFilter) -> list[Article]:
        """MGET documents in id order, dropping vanished and non-matching ones."""
        if not ids:
            return []
        with _redis_errors("find"):
            documents = await self._client.mget([article_key(i) for i in ids])
        articles = [
            article_from_dict(json.loads(doc)) for doc in documents if doc is not None
        ]
        return [a for a in articles if article_filter.matches(a)]


def _score_range(article_filter: ArticleFilter) -> tuple[float | str, float | str]:
    low: float | str = "-inf"
    high: float | str = "+inf"
    if article_filter.since is not None:
        low = article_filter.since.timestamp()
    if article_filter.before is not None:
        high = f"({article_filter.before.timestamp()}"
    elif article_filter.until is not None:
        high = article_filter.until.timestamp()
    return low, high
