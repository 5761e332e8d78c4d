"""
Shared fixtures: in-memory store, hub, and a fake websocket transport.

No Redis, no sockets.
"""
import json
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from websockets.exceptions import ConnectionClosed

from global_news.feed.query import FeedQueryEngine
from global_news.models.news import Article
from global_news.publishing.publisher import NewsPublisher
from global_news.store.memory import InMemoryArticleStore
from global_news.ws_server.hub import BroadcastHub

# Wednesday 2024-05-15 14:30 UTC
NOW = datetime(2024, 5, 15, 14, 30, tzinfo=timezone.utc)


class FakeWebSocket:
    """Records sent frames; yields a fixed list of inbound messages."""

    def __init__(self, messages=(), *, error=None):
        self.sent: list[str] = []
        self.remote_address = ("127.0.0.1", 50123)
        self._messages = list(messages)
        self._error = error

    async def send(self, message: str) -> None:
        if self._error is not None:
            raise self._error
        self.sent.append(message)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self._messages:
            yield message

    def events(self) -> list[dict]:
        return [json.loads(m) for m in self.sent]

    def event_types(self) -> list[str]:
        return [e["type"] for e in self.events()]


def closed_error() -> ConnectionClosed:
    return ConnectionClosed(None, None)


def make_article(**fields) -> Article:
    defaults = {
        "title": "Headline",
        "description": "Body",
        "category": "Politics",
        "region": "Europe",
        "author": "reporter@globalnews.test",
    }
    defaults.update(fields)
    return Article(**defaults)


async def insert_at(store, timestamp: datetime, **fields) -> Article:
    """Insert an article with an explicit timestamp and return it with its id."""
    article = make_article(timestamp=timestamp, **fields)
    result = await store.insert_one(article)
    return replace(article, id=result.inserted_id)


def minutes_ago(minutes: int) -> datetime:
    return NOW - timedelta(minutes=minutes)


@pytest.fixture
def store():
    return InMemoryArticleStore()


@pytest.fixture
def hub():
    return BroadcastHub()


@pytest.fixture
def feed(store):
    return FeedQueryEngine(store, clock=lambda: NOW)


@pytest.fixture
def publisher(store, hub):
    return NewsPublisher(store, hub, clock=lambda: NOW)
