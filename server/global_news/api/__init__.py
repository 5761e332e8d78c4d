"""
HTTP API for the news feed and publishing routes.
"""
from global_news.api.routes import create_app

__all__ = ["create_app"]
