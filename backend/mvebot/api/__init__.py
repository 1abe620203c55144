"""API endpoints."""

from mvebot.api.routes import router, get_bot

__all__ = [
    "router",
    "get_bot",
]
