"""
Global News Configuration

Centralized configuration for the live news service.
All environment variables MUST be defined here. No os.getenv() calls allowed elsewhere.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


STORE_BACKENDS = ("redis", "memory")


def _optional_env(name: str, default: str = "") -> str:
    """Get an optional environment variable with a default."""
    return os.environ.get(name, default)


def _optional_env_int(name: str, default: int) -> int:
    """Get an optional integer environment variable with a default."""
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid integer value for {name}: {value}")


def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve an IANA zone name.

    "UTC" maps to the fixed datetime.timezone.utc so the default works
    on hosts without a tz database.
    """
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown time zone: {name}") from exc


@dataclass(frozen=True)
class HTTPServerConfig:
    """HTTP API listener configuration."""
    host: str
    port: int


@dataclass(frozen=True)
class WebSocketServerConfig:
    """WebSocket server configuration for live viewers."""
    host: str
    port: int
    ping_interval: int = 30
    ping_timeout: int = 10


@dataclass(frozen=True)
class StoreConfig:
    """Article store configuration."""
    backend: str
    redis_url: str


@dataclass(frozen=True)
class FeedConfig:
    """Feed query configuration."""
    timezone_name: str
    latest_limit: int = 7

    @property
    def timezone(self) -> tzinfo:
        """Zone used for today / this_week / this_month boundaries."""
        return resolve_timezone(self.timezone_name)


@dataclass(frozen=True)
class Settings:
    """Root configuration container."""
    http_server: HTTPServerConfig
    websocket_server: WebSocketServerConfig
    store: StoreConfig
    feed: FeedConfig
    log_level: str = "INFO"


def _load_settings() -> Settings:
    """Load all settings from environment variables.

    Everything has a default so a bare checkout starts against a local
    Redis; pass --memory to main to run without one.
    """
    backend = _optional_env("STORE_BACKEND", "redis").lower()
    if backend not in STORE_BACKENDS:
        raise ConfigurationError(
            f"Invalid STORE_BACKEND: {backend} (expected one of {', '.join(STORE_BACKENDS)})"
        )

    feed = FeedConfig(
        timezone_name=_optional_env("FEED_TIMEZONE", "UTC"),
        latest_limit=_optional_env_int("FEED_LATEST_LIMIT", 7),
    )
    # Validate the zone name at load time
    feed.timezone

    return Settings(
        http_server=HTTPServerConfig(
            host=_optional_env("HTTP_HOST", "0.0.0.0"),
            port=_optional_env_int("PORT", 3001),
        ),
        websocket_server=WebSocketServerConfig(
            host=_optional_env("WS_HOST", "0.0.0.0"),
            port=_optional_env_int("WS_PORT", 8765),
        ),
        store=StoreConfig(
            backend=backend,
            redis_url=_optional_env("REDIS_URL", "redis://localhost:6379/0"),
        ),
        feed=feed,
        log_level=_optional_env("LOG_LEVEL", "INFO").upper(),
    )


settings = _load_settings()
