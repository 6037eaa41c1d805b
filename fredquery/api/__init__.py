"""FredQuery HTTP API."""

from fredquery.api.server import create_app

__all__ = ["create_app"]
