"""
WebSocket Server for Live News

Keeps the set of connected viewers and broadcasts published articles to them.
"""
from global_news.ws_server.hub import (
    BroadcastHub,
    ConnectionState,
    HubStats,
    ViewerConnection,
)
from global_news.ws_server.server import LiveNewsServer

__all__ = [
    "BroadcastHub",
    "ConnectionState",
    "HubStats",
    "LiveNewsServer",
    "ViewerConnection",
]
