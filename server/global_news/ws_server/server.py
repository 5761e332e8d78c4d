"""
WebSocket Server for Live News

Accepts viewer connections, registers them with the BroadcastHub, pushes
the current live article to each new viewer, and turns inbound newNews
messages into publishes.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from global_news.core.types import GlobalNewsError
from global_news.feed.query import FeedQueryEngine
from global_news.serializer import article_to_dict, decode_message
from global_news.ws_server.events import ERROR, LIVE_NEWS, NEW_NEWS, PING, PONG
from global_news.ws_server.hub import BroadcastHub, ViewerConnection

if TYPE_CHECKING:
    from global_news.publishing.publisher import NewsPublisher

logger = logging.getLogger(__name__)


class LiveNewsServer:
    """
    WebSocket server for live news viewers.

    Viewers connect without authentication, get the latest live article,
    and then receive every newsPosted / liveNews broadcast until they
    disconnect.
    """

    def __init__(
        self,
        hub: BroadcastHub,
        feed: FeedQueryEngine,
        publisher: NewsPublisher,
        host: str = "0.0.0.0",
        port: int = 8765,
        *,
        ping_interval: float = 30,
        ping_timeout: float = 10,
    ) -> None:
        self._hub = hub
        self._feed = feed
        self._publisher = publisher
        self._host = host
        self._port = port
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._server: Optional[Server] = None
        self._snapshot_tasks: set[asyncio.Task[bool]] = set()

    async def start(self) -> None:
        """Start the WebSocket server."""
        self._server = await serve(
            self._handle_client,
            self._host,
            self._port,
            ping_interval=self._ping_interval,
            ping_timeout=self._ping_timeout,
        )
        logger.info(f"WebSocket server started on ws://{self._host}:{self._port}")

    async def stop(self) -> None:
        """Stop the WebSocket server and disconnect all viewers."""
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("WebSocket server stopped")

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """Handle one viewer from connect to disconnect."""
        viewer = ViewerConnection(websocket, label=f"{websocket.remote_address}")
        self._hub.add(viewer)
        logger.info(f"Viewer connected: {viewer.label} (total: {self._hub.viewer_count})")

        # The live snapshot is fetched in the background so inbound
        # messages are served while the store query is in flight.
        snapshot = asyncio.create_task(self.send_live_snapshot(viewer))
        self._snapshot_tasks.add(snapshot)
        snapshot.add_done_callback(self._snapshot_tasks.discard)

        try:
            async for message in websocket:
                await self._handle_message(viewer, message)
        except ConnectionClosed:
            pass
        finally:
            if not snapshot.done():
                snapshot.cancel()
            self._hub.remove(viewer)
            logger.info(
                f"Viewer disconnected: {viewer.label} (total: {self._hub.viewer_count})"
            )

    async def send_live_snapshot(self, viewer: ViewerConnection) -> bool:
        """
        Push the newest live article to one viewer.

        Sends nothing when no article is live. Returns True if a push was
        delivered.
        """
        try:
            article = await self._feed.current_live()
        except GlobalNewsError as e:
            logger.error(f"Failed to load live news for {viewer.label}: {e}")
            return False

        if article is None:
            return False
        return await self._hub.send(viewer, LIVE_NEWS, [article_to_dict(article)])

    async def _handle_message(self, viewer: ViewerConnection, raw: str | bytes) -> None:
        decoded = decode_message(raw)
        if decoded is None:
            logger.debug(f"Ignoring malformed message from {viewer.label}")
            return

        msg_type, data = decoded
        if msg_type == PING:
            await self._hub.send(viewer, PONG)
        elif msg_type == NEW_NEWS:
            await self._publish_from_viewer(viewer, data)
        else:
            logger.debug(f"Ignoring {msg_type!r} message from {viewer.label}")

    async def _publish_from_viewer(self, viewer: ViewerConnection, data: Any) -> None:
        if not isinstance(data, dict):
            await self._hub.send(viewer, ERROR, {"message": "newNews data must be an object"})
            return
        try:
            await self._publisher.publish(data)
        except GlobalNewsError as e:
            logger.error(
                f"Error posting news from {viewer.label}: {e}",
                extra={"viewer": viewer.label, "error": str(e)},
            )
            await self._hub.send(viewer, ERROR, {"message": "Failed to post news"})

    @property
    def viewer_count(self) -> int:
        """Get current number of connected viewers."""
        return self._hub.viewer_count
