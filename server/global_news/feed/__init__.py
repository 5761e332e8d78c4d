"""
Feed query layer: filtered, sorted, paginated article listings.
"""
from global_news.feed.query import (
    LATEST_NEWS_LIMIT,
    FeedQuery,
    FeedQueryEngine,
    date_window,
)

__all__ = ["LATEST_NEWS_LIMIT", "FeedQuery", "FeedQueryEngine", "date_window"]
