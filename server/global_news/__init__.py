"""
Global News Live Service

Live-news broadcast and feed layer for the Global News platform.
Serves time/category/region-filtered article feeds over HTTP and pushes
newly published articles to connected viewers over WebSocket.

Architecture:
    HTTP POST /news ─┐
    ws newNews ──────┴─> publishing -> store -> ws_server (fan-out to viewers)
    HTTP GET /news ────> feed -> store

Components:
    - store: ArticleStore protocol with Redis and in-memory adapters
    - feed: filter / sort / paginate queries over the store
    - ws_server: BroadcastHub (viewer set + fan-out) and LiveNewsServer
    - publishing: NewsPublisher, persist-then-broadcast write path
    - api: aiohttp routes
"""
