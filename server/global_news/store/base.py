"""
Article Store Protocol

Abstract interface every article store adapter must satisfy. The feed
engine, publisher and HTTP layer depend only on this protocol; the Redis
and in-memory adapters are interchangeable behind it.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from global_news.models.news import Article

ASCENDING = 1
DESCENDING = -1

_SORTABLE = frozenset({"timestamp", "title", "category", "region", "author"})


@dataclass(frozen=True)
class InsertResult:
    inserted_id: str
    acknowledged: bool = True


@dataclass(frozen=True)
class UpdateResult:
    matched_count: int
    modified_count: int


@dataclass(frozen=True)
class DeleteResult:
    deleted_count: int


@dataclass(frozen=True)
class ArticleFilter:
    """
    Conjunction of exact-match and time-range conditions.

    None means "no condition" for every field. Time bounds:
    since <= timestamp, timestamp < before, timestamp <= until.
    """

    category: Optional[str] = None
    region: Optional[str] = None
    author: Optional[str] = None
    is_live: Optional[bool] = None
    since: Optional[datetime] = None
    before: Optional[datetime] = None
    until: Optional[datetime] = None

    @property
    def has_time_bounds(self) -> bool:
        return any(b is not None for b in (self.since, self.before, self.until))

    @property
    def has_field_conditions(self) -> bool:
        """True if any condition other than the time bounds is set."""
        return any(
            c is not None for c in (self.category, self.region, self.author, self.is_live)
        )

    def matches(self, article: Article) -> bool:
        if self.category is not None and article.category != self.category:
            return False
        if self.region is not None and article.region != self.region:
            return False
        if self.author is not None and article.author != self.author:
            return False
        if self.is_live is not None and article.is_live != self.is_live:
            return False

        if not self.has_time_bounds:
            return True
        ts = article.timestamp
        if ts is None:
            return False
        if self.since is not None and ts < self.since:
            return False
        if self.before is not None and ts >= self.before:
            return False
        if self.until is not None and ts > self.until:
            return False
        return True


@dataclass(frozen=True)
class FindOptions:
    """Sort and paging requested on a cursor. limit == 0 means unlimited."""

    sort_key: Optional[str] = None
    direction: int = ASCENDING
    skip: int = 0
    limit: int = 0

    @property
    def end(self) -> Optional[int]:
        """Index one past the last wanted result, or None when unlimited."""
        return self.skip + self.limit if self.limit else None


def apply_options(articles: list[Article], options: FindOptions) -> list[Article]:
    """Sort then page an already-filtered list."""
    if options.sort_key is not None:
        key = options.sort_key

        def sort_value(article: Article) -> tuple[bool, Any]:
            value = getattr(article, key)
            return (value is not None, value)

        articles = sorted(
            articles,
            key=sort_value,
            reverse=options.direction == DESCENDING,
        )
    return articles[options.skip:options.end]


Fetcher = Callable[[ArticleFilter, FindOptions], Awaitable[list[Article]]]


class ArticleCursor:
    """
    Lazily evaluated query over an article store.

    sort/skip/limit chain and only take effect when to_list() runs, so

        await store.find(f).sort("timestamp", DESCENDING).skip(20).limit(10).to_list()

    always sorts before paging, whatever order the calls were made in.
    The store's fetcher receives the filter and the FindOptions together
    and returns the final page.
    """

    def __init__(self, fetch: Fetcher, article_filter: ArticleFilter) -> None:
        self._fetch = fetch
        self._filter = article_filter
        self._sort_key: Optional[str] = None
        self._direction = ASCENDING
        self._skip = 0
        self._limit = 0

    def sort(self, key: str, direction: int = ASCENDING) -> ArticleCursor:
        if key not in _SORTABLE:
            raise ValueError(f"Cannot sort articles by {key!r}")
        if direction not in (ASCENDING, DESCENDING):
            raise ValueError("direction must be ASCENDING or DESCENDING")
        self._sort_key = key
        self._direction = direction
        return self

    def skip(self, count: int) -> ArticleCursor:
        if count < 0:
            raise ValueError("skip must be non-negative")
        self._skip = count
        return self

    def limit(self, count: int) -> ArticleCursor:
        """Cap the result size; 0 means unlimited."""
        if count < 0:
            raise ValueError("limit must be non-negative")
        self._limit = count
        return self

    @property
    def options(self) -> FindOptions:
        return FindOptions(
            sort_key=self._sort_key,
            direction=self._direction,
            skip=self._skip,
            limit=self._limit,
        )

    async def to_list(self) -> list[Article]:
        return await self._fetch(self._filter, self.options)


@runtime_checkable
class ArticleStore(Protocol):
    """Persistent collection of article documents."""

    async def connect(self) -> None:
        """Open connections; raise StoreUnavailableError if unreachable."""
        ...

    async def close(self) -> None:
        ...

    async def insert_one(self, article: Article) -> InsertResult:
        """
        Persist a new article.

        The store assigns the identifier; a missing timestamp is set to now.
        """
        ...

    async def find_one(self, article_id: str) -> Article | None:
        ...

    def find(self, article_filter: ArticleFilter | None = None) -> ArticleCursor:
        ...

    async def update_one(self, article_id: str, patch: dict[str, Any]) -> UpdateResult:
        """Replace the patched fields; _id and timestamp are never touched."""
        ...

    async def delete_one(self, article_id: str) -> DeleteResult:
        ...
