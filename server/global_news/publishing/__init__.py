"""
global_news.publishing — article write path.

Public API:
    NewsPublisher — persists new articles and broadcasts them to live viewers
"""
from .publisher import NewsPublisher

__all__ = ["NewsPublisher"]
