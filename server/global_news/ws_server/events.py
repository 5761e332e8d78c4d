"""
Live Channel Event Names

Outbound (server -> viewer):
  liveNews    — list holding the current live article (on connect, and
                after a publish whose isLive flag is set)
  newsPosted  — the full article, after every publish
  pong        — reply to ping
  error       — a newNews publish from this viewer failed

Inbound (viewer -> server):
  newNews     — article payload to publish
  ping
"""

LIVE_NEWS = "liveNews"
NEWS_POSTED = "newsPosted"
PONG = "pong"
ERROR = "error"

NEW_NEWS = "newNews"
PING = "ping"
