"""
Global News Service Entry Point

Serves the news feed over HTTP and pushes newly published articles to
websocket viewers in real time.

Usage:
    cd server
    python -m global_news.main                 # Redis-backed store
    python -m global_news.main --memory        # in-memory store (no Redis)
    python -m global_news.main --memory --seed # plus sample articles
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal

from aiohttp import web
from dotenv import load_dotenv

# Load environment variables before config reads them
load_dotenv()

from global_news.config import settings  # noqa: E402

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def main(*, use_memory: bool = False, seed_count: int = 0) -> None:
    """
    Main entry point.

    1. Connects to the article store
    2. Starts the websocket server for live viewers
    3. Starts the HTTP API
    4. Runs until SIGINT / SIGTERM, then shuts everything down
    """
    from global_news.api import create_app
    from global_news.feed import FeedQueryEngine
    from global_news.mock_feed import seed
    from global_news.publishing import NewsPublisher
    from global_news.store import InMemoryArticleStore, RedisArticleStore
    from global_news.ws_server import BroadcastHub, LiveNewsServer

    if use_memory or settings.store.backend == "memory":
        store = InMemoryArticleStore()
    else:
        store = RedisArticleStore(settings.store.redis_url)
    await store.connect()

    hub = BroadcastHub()
    feed = FeedQueryEngine(
        store,
        zone=settings.feed.timezone,
        latest_limit=settings.feed.latest_limit,
    )
    publisher = NewsPublisher(store, hub)

    ws_server = LiveNewsServer(
        hub,
        feed,
        publisher,
        host=settings.websocket_server.host,
        port=settings.websocket_server.port,
        ping_interval=settings.websocket_server.ping_interval,
        ping_timeout=settings.websocket_server.ping_timeout,
    )
    await ws_server.start()

    runner = web.AppRunner(create_app(feed=feed, publisher=publisher, hub=hub))
    await runner.setup()
    site = web.TCPSite(runner, settings.http_server.host, settings.http_server.port)
    await site.start()
    logger.info(
        f"HTTP API listening on http://{settings.http_server.host}:{settings.http_server.port}"
    )

    if seed_count:
        await seed(publisher, seed_count)
        logger.info(f"Seeded {seed_count} sample articles")

    # Keep running until interrupted
    shutdown_event = asyncio.Event()

    def signal_handler() -> None:
        logger.info("Shutdown signal received")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await shutdown_event.wait()
    finally:
        logger.info("Shutting down...")

        await ws_server.stop()
        await runner.cleanup()
        await store.close()

        hub_stats = hub.get_stats()
        logger.info(
            "Final stats",
            extra={
                "viewers_served": hub_stats.total_connections,
                "broadcasts": hub_stats.messages_broadcast,
                "failed_deliveries": hub_stats.failed_deliveries,
                "articles_published": publisher.published_count,
            },
        )


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Global news live service")
    parser.add_argument(
        "--memory",
        action="store_true",
        help="use the in-memory article store instead of Redis",
    )
    parser.add_argument(
        "--seed",
        type=int,
        nargs="?",
        const=20,
        default=0,
        metavar="N",
        help="publish N sample articles at startup (default 20)",
    )
    return parser.parse_args()


def run() -> None:
    args = _parse_args()
    asyncio.run(main(use_memory=args.memory, seed_count=args.seed))


if __name__ == "__main__":
    run()
