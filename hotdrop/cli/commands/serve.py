"""``hotdrop serve`` — run the HTTP server under uvicorn."""

from __future__ import annotations

from pathlib import Path

import typer
import uvicorn

from hotdrop.config import ServerConfig
from hotdrop.observability import setup_logging
from hotdrop.server.app import create_app


def serve_cmd(
    host: str = typer.Option(None, "--host", help="Interface to bind (default from config)."),
    port: int = typer.Option(None, "--port", "-p", help="Port to bind (default from config)."),
    data_dir: Path = typer.Option(
        None, "--data-dir", "-d", help="Storage root (default from config)."
    ),
) -> None:
    """Run the hotdrop server until interrupted.

    Settings not given on the command line come from HOTDROP_* environment
    variables or the .env file.
    """
    overrides = {
        key: value
        for key, value in {"host": host, "port": port, "data_dir": data_dir}.items()
        if value is not None
    }
    settings = ServerConfig(**overrides)
    setup_logging(settings.log_level, settings.log_format)

    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
