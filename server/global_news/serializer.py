"""
Article Serializer

Converts between Article and the plain dicts used on every transport:
HTTP responses, websocket events and the Redis document store all share
the same field names so clients see one shape regardless of source.

Websocket wire format (envelope):
  {
    "type": "newsPosted",
    "data": { ...article fields... }
  }
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

from global_news.core.types import InvalidArgumentError
from global_news.models.news import EDITABLE_FIELDS, Article


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            # fromisoformat only learned the "Z" suffix in 3.11
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidArgumentError(
                "timestamp is not an ISO-8601 string", field="timestamp", value=value
            ) from exc
    else:
        raise InvalidArgumentError(
            "timestamp must be an ISO-8601 string", field="timestamp", value=value
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def article_from_dict(data: dict[str, Any]) -> Article:
    """
    Build an Article from a wire/document dict.

    Unknown keys are kept in Article.extra.
    """
    known: dict[str, Any] = {}
    extra: dict[str, Any] = {}

    for key, value in data.items():
        if key in ("_id", "timestamp"):
            continue
        attr = EDITABLE_FIELDS.get(key)
        if attr is None:
            extra[key] = value
        else:
            known[attr] = value

    for flag in ("is_live", "breaking_news", "popular_news"):
        if flag in known:
            known[flag] = bool(known[flag])

    article_id = data.get("_id")
    try:
        return Article(
            id=str(article_id) if article_id is not None else None,
            timestamp=_parse_timestamp(data.get("timestamp")),
            extra=extra,
            **known,
        )
    except ValueError as exc:
        raise InvalidArgumentError(str(exc), field="_id", value=article_id) from exc


def article_to_dict(article: Article) -> dict[str, Any]:
    """
    Serialize an Article to a JSON-serializable dict.

    Field names follow the public wire format (isLive, breaking_news, ...).
    """
    data: dict[str, Any] = dict(article.extra)
    data.update({
        "_id": article.id,
        "title": article.title,
        "description": article.description,
        "image": article.image,
        "category": article.category,
        "region": article.region,
        "author": article.author,
        "isLive": article.is_live,
        "breaking_news": article.breaking_news,
        "popular_news": article.popular_news,
        "timestamp": article.timestamp.isoformat() if article.timestamp else None,
    })
    return data


def encode_event(event: str, data: Any = None) -> str:
    """Encode an outbound websocket event."""
    payload: dict[str, Any] = {"type": event}
    if data is not None:
        payload["data"] = data
    return json.dumps(payload, default=str)


def decode_message(raw: str | bytes) -> Optional[tuple[str, Any]]:
    """
    Decode an inbound websocket message into (type, data).

    Returns None for anything that is not a JSON object with a string "type".
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(message, dict) or not isinstance(message.get("type"), str):
        return None
    return message["type"], message.get("data")
