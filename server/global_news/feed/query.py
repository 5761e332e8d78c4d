"""
Feed Query Engine

Turns feed request parameters (category, region, recency window, paging)
into an article store query and returns articles newest first.

Date buckets are evaluated in an explicit time zone: the configured
default, or a per-request override. Boundaries:

  today       [00:00 today, 00:00 tomorrow)
  this_week   [00:00 on the most recent Sunday, now]
  this_month  [00:00 on the 1st, now]
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Mapping, Optional

from global_news.config import ConfigurationError, resolve_timezone
from global_news.core.types import InvalidArgumentError, NotFoundError
from global_news.models.news import ALL, Article, DateBucket, is_valid_article_id
from global_news.store.base import DESCENDING, ArticleFilter, ArticleStore

logger = logging.getLogger(__name__)

LATEST_NEWS_LIMIT = 7

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _midnight(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


def date_window(bucket: DateBucket, now: datetime) -> ArticleFilter:
    """
    Time bounds for a recency bucket.

    `now` must be aware and already expressed in the zone whose calendar
    defines the day boundaries.
    """
    start_of_day = _midnight(now)

    if bucket is DateBucket.TODAY:
        tomorrow = start_of_day.date() + timedelta(days=1)
        return ArticleFilter(
            since=start_of_day,
            before=datetime.combine(tomorrow, time.min, tzinfo=now.tzinfo),
        )

    if bucket is DateBucket.THIS_WEEK:
        # weekday(): Monday=0 .. Sunday=6
        days_since_sunday = (now.weekday() + 1) % 7
        sunday = start_of_day.date() - timedelta(days=days_since_sunday)
        return ArticleFilter(
            since=datetime.combine(sunday, time.min, tzinfo=now.tzinfo),
            until=now,
        )

    first_of_month = start_of_day.date().replace(day=1)
    return ArticleFilter(
        since=datetime.combine(first_of_month, time.min, tzinfo=now.tzinfo),
        until=now,
    )


def _parse_int(params: Mapping[str, str], name: str) -> Optional[int]:
    raw = params.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidArgumentError(f"{name} must be an integer", field=name, value=raw) from exc


def _optional_match(value: Optional[str]) -> Optional[str]:
    if value is None or value == "" or value == ALL:
        return None
    return value


@dataclass(frozen=True)
class FeedQuery:
    """Parsed feed request."""

    category: Optional[str] = None
    region: Optional[str] = None
    date: Optional[DateBucket] = None
    page: Optional[int] = None
    size: Optional[int] = None
    tz: Optional[str] = None

    def __post_init__(self) -> None:
        if self.size is not None and self.size <= 0:
            raise InvalidArgumentError("size must be positive", field="size", value=self.size)
        if self.page is not None and self.page < 0:
            raise InvalidArgumentError("pages must be non-negative", field="pages", value=self.page)

    @property
    def paginated(self) -> bool:
        return self.size is not None

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> FeedQuery:
        """
        Build a query from request parameters.

        Accepts `pages` (the public name) or `page` for the page index.
        An unrecognised `date` value leaves the feed unfiltered on time.
        """
        date: Optional[DateBucket] = None
        raw_date = params.get("date")
        if raw_date:
            date = DateBucket.from_string(raw_date)
            if date is None:
                logger.debug(f"Ignoring unknown date bucket {raw_date!r}")

        page = _parse_int(params, "pages")
        if page is None:
            page = _parse_int(params, "page")

        return cls(
            category=_optional_match(params.get("category")),
            region=_optional_match(params.get("region")),
            date=date,
            page=page,
            size=_parse_int(params, "size"),
            tz=params.get("tz") or None,
        )


class FeedQueryEngine:
    """
    Read-only queries over the article store.

    Args:
        store:        ArticleStore to query.
        zone:         Zone for date-bucket boundaries when a request names none.
        latest_limit: Number of articles latest() returns.
        clock:        Returns the current aware time; injectable for tests.
    """

    def __init__(
        self,
        store: ArticleStore,
        *,
        zone: tzinfo = timezone.utc,
        latest_limit: int = LATEST_NEWS_LIMIT,
        clock: Clock = _utcnow,
    ) -> None:
        self._store = store
        self._timezone = zone
        self._latest_limit = latest_limit
        self._clock = clock

    def _zone_for(self, query: FeedQuery) -> tzinfo:
        if query.tz is None:
            return self._timezone
        try:
            return resolve_timezone(query.tz)
        except ConfigurationError as exc:
            raise InvalidArgumentError("Unknown time zone", field="tz", value=query.tz) from exc

    def build_filter(self, query: FeedQuery) -> ArticleFilter:
        """Translate a FeedQuery into store conditions."""
        window = ArticleFilter()
        if query.date is not None:
            now = self._clock().astimezone(self._zone_for(query))
            window = date_window(query.date, now)

        return ArticleFilter(
            category=query.category,
            region=query.region,
            since=window.since,
            before=window.before,
            until=window.until,
        )

    async def feed(self, query: FeedQuery) -> list[Article]:
        """Filtered feed, newest first, optionally one page of it."""
        cursor = self._store.find(self.build_filter(query)).sort("timestamp", DESCENDING)
        if query.paginated:
            page = query.page or 0
            cursor = cursor.skip(page * query.size).limit(query.size)

        articles = await cursor.to_list()
        logger.debug(
            f"Feed query returned {len(articles)} article(s)",
            extra={"category": query.category, "region": query.region, "date": query.date},
        )
        return articles

    async def latest(self, limit: Optional[int] = None) -> list[Article]:
        """Most recent articles regardless of status or filters."""
        count = self._latest_limit if limit is None else limit
        return await self._store.find().sort("timestamp", DESCENDING).limit(count).to_list()

    async def current_live(self) -> Article | None:
        """The newest article flagged live, if any."""
        live = await (
            self._store.find(ArticleFilter(is_live=True))
            .sort("timestamp", DESCENDING)
            .limit(1)
            .to_list()
        )
        return live[0] if live else None

    async def get_article(self, article_id: str) -> Article:
        """
        Look up one article.

        Raises:
            InvalidArgumentError: If article_id is not a 24-hex-char token.
            NotFoundError: If no article has that id.
        """
        if not is_valid_article_id(article_id):
            raise InvalidArgumentError("Invalid news ID", field="id", value=article_id)

        article = await self._store.find_one(article_id)
        if article is None:
            raise NotFoundError("News not found", key=article_id)
        return article

    async def by_author(self, email: str) -> list[Article]:
        """All articles written by `email`, newest first."""
        return await (
            self._store.find(ArticleFilter(author=email))
            .sort("timestamp", DESCENDING)
            .to_list()
        )
