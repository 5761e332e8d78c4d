"""
Broadcast Hub

Owns the set of open viewer connections and fans events out to them.
add() and remove() are the only mutators of that set. Delivery is
best-effort: a viewer that fails to receive is logged and skipped, and
never stops delivery to the others.

Everything runs on one event loop, so the set needs no lock; broadcast
iterates over a snapshot taken before the first await.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Protocol

from websockets.exceptions import ConnectionClosed

from global_news.models.news import Article
from global_news.serializer import article_to_dict, encode_event
from global_news.ws_server.events import LIVE_NEWS, NEWS_POSTED

logger = logging.getLogger(__name__)

_viewer_ids = itertools.count(1)


class Transport(Protocol):
    """The part of a websocket connection the hub needs."""

    async def send(self, message: str) -> None:
        ...


class ConnectionState(str, Enum):
    """Viewer connection lifecycle: connecting -> open -> closed."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ViewerConnection:
    """One connected viewer. Carries no persisted state."""

    def __init__(self, transport: Transport, label: Optional[str] = None) -> None:
        self.transport = transport
        self.viewer_id = next(_viewer_ids)
        self.label = label or f"viewer-{self.viewer_id}"
        self.state = ConnectionState.CONNECTING
        self.connected_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    async def send(self, message: str) -> bool:
        """Send message to this viewer, return True on success."""
        if not self.is_open:
            return False
        try:
            await self.transport.send(message)
            return True
        except ConnectionClosed:
            return False
        except Exception as e:
            logger.warning(f"Failed to send to {self.label}: {e}")
            return False

    def __repr__(self) -> str:
        return f"ViewerConnection({self.label!r}, {self.state.value})"


@dataclass
class HubStats:
    """Broadcast hub statistics."""

    connected_viewers: int
    total_connections: int
    messages_broadcast: int
    failed_deliveries: int
    start_time: datetime


class BroadcastHub:
    """Fan-out set of open viewer connections."""

    def __init__(self) -> None:
        self._viewers: set[ViewerConnection] = set()
        self._total_connections = 0
        self._messages_broadcast = 0
        self._failed_deliveries = 0
        self._start_time = datetime.now(timezone.utc)

    # ── Membership ────────────────────────────────────────────────────────────

    def add(self, viewer: ViewerConnection) -> None:
        """Mark viewer open and include it in every later broadcast."""
        if viewer.state is ConnectionState.CLOSED:
            raise ValueError(f"{viewer!r} is already closed")
        if viewer.is_open:
            return
        viewer.state = ConnectionState.OPEN
        viewer.connected_at = datetime.now(timezone.utc)
        self._viewers.add(viewer)
        self._total_connections += 1

    def remove(self, viewer: ViewerConnection) -> bool:
        """
        Close viewer and drop it from the fan-out set.

        Returns False (and does nothing) if it was already closed.
        """
        if viewer.state is ConnectionState.CLOSED:
            return False
        viewer.state = ConnectionState.CLOSED
        self._viewers.discard(viewer)
        return True

    @property
    def viewer_count(self) -> int:
        return len(self._viewers)

    # ── Delivery ──────────────────────────────────────────────────────────────

    async def send(self, viewer: ViewerConnection, event: str, data: Any = None) -> bool:
        """Send one event to a single viewer."""
        delivered = await viewer.send(encode_event(event, data))
        if not delivered:
            self._failed_deliveries += 1
        return delivered

    async def broadcast(self, event: str, data: Any = None) -> int:
        """
        Send one event to every open viewer.

        Returns the number of viewers that received it.
        """
        viewers = [v for v in self._viewers if v.is_open]
        if not viewers:
            return 0

        message = encode_event(event, data)
        results = await asyncio.gather(
            *[viewer.send(message) for viewer in viewers],
            return_exceptions=True,
        )

        success_count = sum(1 for r in results if r is True)
        self._messages_broadcast += 1

        if success_count < len(viewers):
            failed = len(viewers) - success_count
            self._failed_deliveries += failed
            logger.debug(
                f"Broadcast {event}: {success_count}/{len(viewers)} viewers "
                f"({failed} failed)"
            )

        return success_count

    async def broadcast_article(self, article: Article) -> int:
        """
        Announce a freshly persisted article.

        newsPosted always goes out first; liveNews follows only for live
        articles. Returns the newsPosted delivery count.
        """
        data = article_to_dict(article)
        delivered = await self.broadcast(NEWS_POSTED, data)
        if article.is_live:
            await self.broadcast(LIVE_NEWS, [data])
        return delivered

    def get_stats(self) -> HubStats:
        """Get current hub statistics."""
        return HubStats(
            connected_viewers=len(self._viewers),
            total_connections=self._total_connections,
            messages_broadcast=self._messages_broadcast,
            failed_deliveries=self._failed_deliveries,
            start_time=self._start_time,
        )
