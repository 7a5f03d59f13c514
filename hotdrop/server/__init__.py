"""hotdrop HTTP server — FastAPI application and routes."""

from hotdrop.server.app import create_app

__all__ = ["create_app"]
