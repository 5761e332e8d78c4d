"""
Global News Core Utilities

Exception taxonomy shared by every layer.
"""
from global_news.core.types import (
    ConflictError,
    GlobalNewsError,
    InvalidActionError,
    InvalidArgumentError,
    NotFoundError,
    StoreUnavailableError,
)

__all__ = [
    "ConflictError",
    "GlobalNewsError",
    "InvalidActionError",
    "InvalidArgumentError",
    "NotFoundError",
    "StoreUnavailableError",
]
