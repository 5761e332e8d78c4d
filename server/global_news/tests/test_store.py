"""
Tests for global_news.store

The in-memory adapter is exercised directly; for the Redis adapter all
Redis I/O is replaced with AsyncMock — no live Redis required.
"""
import json
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

from conftest import NOW, insert_at, make_article, minutes_ago
from global_news.core.types import StoreUnavailableError
from global_news.models.news import is_valid_article_id
from global_news.store import (
    ASCENDING,
    DESCENDING,
    ArticleFilter,
    ArticleStore,
    InMemoryArticleStore,
    RedisArticleStore,
)
from global_news.store.redis_store import SCAN_BATCH, TIMELINE, article_key


# ── ArticleFilter ─────────────────────────────────────────────────────────────

def test_filter_exact_match_fields():
    article = make_article(category="Sports", region="Asia", timestamp=NOW)

    assert ArticleFilter(category="Sports").matches(article)
    assert not ArticleFilter(category="Health").matches(article)
    assert ArticleFilter(category="Sports", region="Asia").matches(article)
    assert not ArticleFilter(category="Sports", region="Europe").matches(article)


def test_filter_time_bounds_are_half_open_on_before():
    article = make_article(timestamp=NOW)

    assert ArticleFilter(since=NOW).matches(article)
    assert not ArticleFilter(before=NOW).matches(article)
    assert ArticleFilter(until=NOW).matches(article)
    assert not ArticleFilter(since=NOW + timedelta(seconds=1)).matches(article)


def test_filter_with_time_bounds_excludes_untimestamped():
    assert not ArticleFilter(since=NOW).matches(make_article())


# ── InMemoryArticleStore ──────────────────────────────────────────────────────

def test_memory_store_satisfies_protocol():
    assert isinstance(InMemoryArticleStore(), ArticleStore)


async def test_insert_assigns_id_and_missing_timestamp(store):
    result = await store.insert_one(make_article())

    assert result.acknowledged
    assert is_valid_article_id(result.inserted_id)
    stored = await store.find_one(result.inserted_id)
    assert stored.id == result.inserted_id
    assert stored.timestamp is not None


async def test_insert_keeps_given_timestamp(store):
    inserted = await insert_at(store, NOW)
    stored = await store.find_one(inserted.id)
    assert stored.timestamp == NOW


async def test_find_one_missing_returns_none(store):
    assert await store.find_one("66443f0c2a1b3c4d5e6f7089") is None


async def test_cursor_sorts_before_paging(store):
    for minutes in (5, 1, 4, 2, 3):
        await insert_at(store, minutes_ago(minutes), title=f"m{minutes}")

    # limit/skip called before sort must still apply to the sorted result
    page = await store.find().limit(2).skip(1).sort("timestamp", DESCENDING).to_list()

    assert [a.title for a in page] == ["m2", "m3"]


async def test_cursor_ascending_sort(store):
    for minutes in (1, 3, 2):
        await insert_at(store, minutes_ago(minutes), title=f"m{minutes}")

    articles = await store.find().sort("timestamp", ASCENDING).to_list()

    assert [a.title for a in articles] == ["m3", "m2", "m1"]


async def test_cursor_limit_zero_is_unlimited(store):
    for minutes in range(4):
        await insert_at(store, minutes_ago(minutes))
    assert len(await store.find().limit(0).to_list()) == 4


def test_cursor_rejects_unknown_sort_key(store):
    with pytest.raises(ValueError, match="Cannot sort"):
        store.find().sort("password")


async def test_update_one_reports_matched_and_modified(store):
    inserted = await insert_at(store, NOW, title="Old")

    result = await store.update_one(inserted.id, {"title": "New"})
    assert (result.matched_count, result.modified_count) == (1, 1)
    assert (await store.find_one(inserted.id)).title == "New"

    again = await store.update_one(inserted.id, {"title": "New"})
    assert (again.matched_count, again.modified_count) == (1, 0)


async def test_update_one_missing_matches_nothing(store):
    result = await store.update_one("66443f0c2a1b3c4d5e6f7089", {"title": "x"})
    assert (result.matched_count, result.modified_count) == (0, 0)


async def test_update_one_leaves_timestamp_alone(store):
    inserted = await insert_at(store, NOW)
    await store.update_one(inserted.id, {"timestamp": "2030-01-01T00:00:00Z", "title": "x"})
    assert (await store.find_one(inserted.id)).timestamp == NOW


async def test_delete_one_is_physical(store):
    inserted = await insert_at(store, NOW)

    assert (await store.delete_one(inserted.id)).deleted_count == 1
    assert await store.find_one(inserted.id) is None
    assert (await store.delete_one(inserted.id)).deleted_count == 0


# ── RedisArticleStore ─────────────────────────────────────────────────────────

@pytest.fixture
def mock_redis():
    """
    Patch global_news.store.redis_store.Redis so that Redis.from_url()
    returns an AsyncMock instance. Yields the mock Redis instance.

    pipeline() is synchronous in redis.asyncio and the queued commands
    only run on execute(), so the pipeline is a MagicMock with an async
    execute.
    """
    with patch("global_news.store.redis_store.Redis") as mock_cls:
        instance = AsyncMock()
        instance.ping = AsyncMock(return_value=True)
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[True, 1])
        instance.pipeline = MagicMock(return_value=pipe)
        mock_cls.from_url.return_value = instance
        yield instance


@pytest.fixture
def mock_pipeline(mock_redis):
    return mock_redis.pipeline.return_value


@pytest.fixture
async def redis_store(mock_redis):
    """A RedisArticleStore that has already called connect()."""
    store = RedisArticleStore(redis_url="redis://localhost:6379/0")
    await store.connect()
    yield store
    await store.close()


def _documents(*articles: dict) -> list[str]:
    return [json.dumps(a) for a in articles]


ID_1 = "66443f0c2a1b3c4d5e6f7081"
ID_2 = "66443f0c2a1b3c4d5e6f7082"
ID_3 = "66443f0c2a1b3c4d5e6f7083"


async def test_redis_connect_ping_failure_raises_store_unavailable(mock_redis):
    mock_redis.ping.side_effect = RedisError("connection refused")

    store = RedisArticleStore(redis_url="redis://localhost:6379/0")
    with pytest.raises(StoreUnavailableError, match="connect failed"):
        await store.connect()


async def test_redis_use_before_connect_raises():
    store = RedisArticleStore(redis_url="redis://localhost:6379/0")
    with pytest.raises(StoreUnavailableError, match="not connected"):
        await store.find_one("66443f0c2a1b3c4d5e6f7089")


async def test_redis_insert_writes_document_and_timeline_in_one_transaction(
    redis_store, mock_redis, mock_pipeline
):
    result = await redis_store.insert_one(make_article(title="Breaking", timestamp=NOW))

    mock_redis.pipeline.assert_called_once_with(transaction=True)
    key, raw = mock_pipeline.set.call_args.args
    assert key == article_key(result.inserted_id)
    document = json.loads(raw)
    assert document["_id"] == result.inserted_id
    assert document["title"] == "Breaking"
    mock_pipeline.zadd.assert_called_once_with(TIMELINE, {result.inserted_id: NOW.timestamp()})
    mock_pipeline.execute.assert_awaited_once()

    # Nothing goes to Redis outside the transaction
    mock_redis.set.assert_not_called()
    mock_redis.zadd.assert_not_called()


async def test_redis_insert_transaction_failure_raises_store_unavailable(
    redis_store, mock_redis, mock_pipeline
):
    mock_pipeline.execute.side_effect = RedisConnectionError("connection reset")

    with pytest.raises(StoreUnavailableError, match="insert failed"):
        await redis_store.insert_one(make_article(timestamp=NOW))

    mock_redis.set.assert_not_called()
    mock_redis.zadd.assert_not_called()


async def test_redis_find_one_decodes_document(redis_store, mock_redis):
    article_id = "66443f0c2a1b3c4d5e6f7089"
    mock_redis.get.return_value = json.dumps(
        {"_id": article_id, "title": "Stored", "isLive": True, "timestamp": NOW.isoformat()}
    )

    article = await redis_store.find_one(article_id)

    mock_redis.get.assert_called_once_with(article_key(article_id))
    assert article.title == "Stored"
    assert article.is_live is True
    assert article.timestamp == NOW


async def test_redis_find_one_missing_returns_none(redis_store, mock_redis):
    mock_redis.get.return_value = None
    assert await redis_store.find_one("66443f0c2a1b3c4d5e6f7089") is None


async def test_redis_unfiltered_page_is_limited_in_redis(redis_store, mock_redis):
    mock_redis.zrevrangebyscore.return_value = [ID_3, ID_2]
    mock_redis.mget.return_value = _documents(
        {"_id": ID_3, "title": "t3", "timestamp": minutes_ago(1).isoformat()},
        {"_id": ID_2, "title": "t2", "timestamp": minutes_ago(2).isoformat()},
    )

    articles = await redis_store.find().sort("timestamp", DESCENDING).skip(5).limit(2).to_list()

    mock_redis.zrevrangebyscore.assert_called_once_with(
        TIMELINE, "+inf", "-inf", start=5, num=2
    )
    mock_redis.mget.assert_called_once_with([article_key(ID_3), article_key(ID_2)])
    assert [a.title for a in articles] == ["t3", "t2"]


async def test_redis_unlimited_ascending_reads_whole_range(redis_store, mock_redis):
    mock_redis.zrangebyscore.return_value = []

    assert await redis_store.find().to_list() == []
    mock_redis.zrangebyscore.assert_called_once_with(
        TIMELINE, "-inf", "+inf", start=0, num=-1
    )
    mock_redis.mget.assert_not_called()


async def test_redis_filtered_query_ranges_timeline_and_filters(redis_store, mock_redis):
    mock_redis.zrevrangebyscore.return_value = [ID_2, ID_1]
    mock_redis.mget.return_value = _documents(
        {"_id": ID_2, "category": "Health", "timestamp": minutes_ago(1).isoformat()},
        {"_id": ID_1, "category": "Sports", "timestamp": minutes_ago(2).isoformat()},
    )

    articles = await (
        redis_store.find(ArticleFilter(category="Sports", since=minutes_ago(10), before=NOW))
        .sort("timestamp", DESCENDING)
        .to_list()
    )

    mock_redis.zrevrangebyscore.assert_called_once_with(
        TIMELINE, f"({NOW.timestamp()}", minutes_ago(10).timestamp(), start=0, num=SCAN_BATCH
    )
    assert [a.id for a in articles] == [ID_1]


async def test_redis_filtered_query_stops_once_page_is_full(redis_store, mock_redis):
    full_batch = [f"66443f0c2a1b3c4d5e6f{n:04x}" for n in range(SCAN_BATCH)]
    mock_redis.zrevrangebyscore.return_value = full_batch
    mock_redis.mget.return_value = _documents(
        *(
            {"_id": i, "isLive": True, "timestamp": minutes_ago(n + 1).isoformat()}
            for n, i in enumerate(full_batch)
        )
    )

    live = await (
        redis_store.find(ArticleFilter(is_live=True))
        .sort("timestamp", DESCENDING)
        .limit(1)
        .to_list()
    )

    assert [a.id for a in live] == [full_batch[0]]
    mock_redis.zrevrangebyscore.assert_called_once()


async def test_redis_filtered_query_pages_through_timeline(redis_store, mock_redis):
    first = [f"66443f0c2a1b3c4d5e6f{n:04x}" for n in range(SCAN_BATCH)]
    mock_redis.zrevrangebyscore.side_effect = [first, [ID_1]]
    mock_redis.mget.side_effect = [
        _documents(*({"_id": i, "isLive": False} for i in first)),
        _documents({"_id": ID_1, "isLive": True}),
    ]

    live = await (
        redis_store.find(ArticleFilter(is_live=True))
        .sort("timestamp", DESCENDING)
        .limit(1)
        .to_list()
    )

    assert [a.id for a in live] == [ID_1]
    second_call = mock_redis.zrevrangebyscore.call_args_list[1]
    assert second_call.kwargs == {"start": SCAN_BATCH, "num": SCAN_BATCH}


async def test_redis_non_timestamp_sort_loads_range_then_sorts(redis_store, mock_redis):
    mock_redis.zrangebyscore.return_value = [ID_1, ID_2]
    mock_redis.mget.return_value = _documents(
        {"_id": ID_1, "title": "b"},
        {"_id": ID_2, "title": "a"},
    )

    articles = await redis_store.find().sort("title").limit(1).to_list()

    mock_redis.zrangebyscore.assert_called_once_with(
        TIMELINE, "-inf", "+inf", start=None, num=None
    )
    assert [a.title for a in articles] == ["a"]


async def test_redis_update_missing_matches_nothing(redis_store, mock_redis):
    mock_redis.get.return_value = None

    result = await redis_store.update_one("66443f0c2a1b3c4d5e6f7089", {"title": "x"})

    assert (result.matched_count, result.modified_count) == (0, 0)
    mock_redis.set.assert_not_called()


async def test_redis_delete_removes_document_and_timeline_entry(
    redis_store, mock_redis, mock_pipeline
):
    article_id = "66443f0c2a1b3c4d5e6f7089"
    mock_pipeline.execute.return_value = [1, 1]

    result = await redis_store.delete_one(article_id)

    assert result.deleted_count == 1
    mock_redis.pipeline.assert_called_once_with(transaction=True)
    mock_pipeline.delete.assert_called_once_with(article_key(article_id))
    mock_pipeline.zrem.assert_called_once_with(TIMELINE, article_id)
    mock_redis.delete.assert_not_called()


async def test_redis_delete_transaction_failure_raises_store_unavailable(
    redis_store, mock_pipeline
):
    mock_pipeline.execute.side_effect = RedisError("READONLY")

    with pytest.raises(StoreUnavailableError, match="delete failed"):
        await redis_store.delete_one("66443f0c2a1b3c4d5e6f7089")


async def test_redis_context_manager_connects_and_closes(mock_redis):
    async with RedisArticleStore(redis_url="redis://localhost:6379/0") as store:
        assert store._redis is not None
        mock_redis.ping.assert_called_once()

    mock_redis.aclose.assert_called_once()
