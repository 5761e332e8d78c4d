"""
HTTP API

Request/response surface next to the live channel:

    GET   /                          health check
    POST  /news                      publish (201 + insertion result)
    GET   /news                      filtered feed: category, region, date, pages, size, tz
    GET   /news/{id}                 one article (400 malformed id, 404 absent)
    PATCH /news/{id}                 {"action": "edit"|"delete", "updatedArticle": {...}}
    GET   /news/my-articles/{email}  articles by author
    GET   /newss/latestNews          7 most recent articles
    GET   /stats                     live channel statistics
"""
from __future__ import annotations

import json
import logging
from typing import Any

from aiohttp import web

from global_news.api.middleware import error_middleware
from global_news.core.types import InvalidArgumentError
from global_news.feed.query import FeedQuery, FeedQueryEngine
from global_news.publishing.publisher import NewsPublisher
from global_news.serializer import article_to_dict
from global_news.store.base import DeleteResult
from global_news.ws_server.hub import BroadcastHub

logger = logging.getLogger(__name__)

FEED = web.AppKey("feed", FeedQueryEngine)
PUBLISHER = web.AppKey("publisher", NewsPublisher)
HUB = web.AppKey("hub", BroadcastHub)

routes = web.RouteTableDef()


async def _json_object(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except json.JSONDecodeError as exc:
        raise InvalidArgumentError("Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise InvalidArgumentError("Request body must be a JSON object")
    return body


@routes.get("/")
async def index(request: web.Request) -> web.Response:
    return web.Response(text="Global news server is running...")


@routes.post("/news")
async def post_news(request: web.Request) -> web.Response:
    payload = await _json_object(request)
    result = await request.app[PUBLISHER].publish(payload)
    return web.json_response(
        {"acknowledged": result.acknowledged, "insertedId": result.inserted_id},
        status=201,
    )


@routes.get("/news")
async def list_news(request: web.Request) -> web.Response:
    query = FeedQuery.from_params(request.query)
    articles = await request.app[FEED].feed(query)
    return web.json_response([article_to_dict(a) for a in articles])


@routes.get("/news/my-articles/{email}")
async def my_articles(request: web.Request) -> web.Response:
    articles = await request.app[FEED].by_author(request.match_info["email"])
    return web.json_response([article_to_dict(a) for a in articles])


@routes.get("/news/{id}")
async def get_news(request: web.Request) -> web.Response:
    article = await request.app[FEED].get_article(request.match_info["id"])
    return web.json_response(article_to_dict(article))


@routes.patch("/news/{id}")
async def patch_news(request: web.Request) -> web.Response:
    body = await _json_object(request)
    result = await request.app[PUBLISHER].apply_action(
        request.match_info["id"],
        body.get("action"),
        body.get("updatedArticle"),
    )
    if isinstance(result, DeleteResult):
        return web.json_response({"deletedCount": result.deleted_count})
    return web.json_response(
        {"matchedCount": result.matched_count, "modifiedCount": result.modified_count}
    )


@routes.get("/newss/latestNews")
async def latest_news(request: web.Request) -> web.Response:
    articles = await request.app[FEED].latest()
    return web.json_response([article_to_dict(a) for a in articles])


@routes.get("/stats")
async def stats(request: web.Request) -> web.Response:
    hub_stats = request.app[HUB].get_stats()
    return web.json_response({
        "connectedViewers": hub_stats.connected_viewers,
        "totalConnections": hub_stats.total_connections,
        "messagesBroadcast": hub_stats.messages_broadcast,
        "failedDeliveries": hub_stats.failed_deliveries,
        "articlesPublished": request.app[PUBLISHER].published_count,
        "startTime": hub_stats.start_time.isoformat(),
    })


def create_app(
    *,
    feed: FeedQueryEngine,
    publisher: NewsPublisher,
    hub: BroadcastHub,
) -> web.Application:
    """Build the aiohttp application with its collaborators injected."""
    app = web.Application(middlewares=[error_middleware])
    app[FEED] = feed
    app[PUBLISHER] = publisher
    app[HUB] = hub
    app.add_routes(routes)
    return app
