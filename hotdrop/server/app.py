"""hotdrop API — FastAPI application factory.

Invariants:
    - Routes registered explicitly: /health, /deploy and the logic route
    - Global error handlers map HotdropError → structured JSON responses
    - Request bodies over ``max_body_bytes`` are refused with 413
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from hotdrop import __version__
from hotdrop.config import ServerConfig
from hotdrop.core.runtime import Runtime
from hotdrop.server.error_handlers import register_error_handlers
from hotdrop.server.middleware import BodySizeLimitMiddleware
from hotdrop.server.routes import deploy, health
from hotdrop.server.routes.logic import LOGIC_METHODS, handle_logic_request

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    runtime: Runtime = app.state.runtime
    logger.info(
        "hotdrop API started (data dir: %s, deployment: %s)",
        runtime.settings.data_dir,
        runtime.registry.current(),
    )
    yield
    logger.info("hotdrop API shutting down")


def create_app(
    settings: ServerConfig | None = None,
    *,
    chat_client: Any = None,
    db: Any = None,
) -> FastAPI:
    """Build the FastAPI app and the Runtime behind it.

    The app itself is exposed to deployed logic as ``context.app``.
    """
    settings = settings or ServerConfig()
    app = FastAPI(title="hotdrop API", version=__version__, lifespan=lifespan)
    app.state.runtime = Runtime(settings, chat_client=chat_client, db=db, app=app)

    register_error_handlers(app)

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    app.include_router(health.router)
    app.include_router(deploy.router)
    app.add_api_route(
        settings.logic_route,
        handle_logic_request,
        methods=LOGIC_METHODS,
        tags=["logic"],
    )
    return app
