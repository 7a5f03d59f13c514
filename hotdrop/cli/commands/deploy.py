"""``hotdrop deploy DIR`` — build a directory into a local data dir.

Bypasses the network and the deploy token: whoever can write the data
directory can deploy.  Useful for seeding a server before its first start.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from hotdrop.client import collect_files
from hotdrop.config import ServerConfig
from hotdrop.core.errors import HotdropError
from hotdrop.core.runtime import Runtime

console = Console()


def deploy_cmd(
    source: Path = typer.Argument(..., help="Directory holding the deployment files."),
    data_dir: Path = typer.Option(
        None, "--data-dir", "-d", help="Storage root (default from config)."
    ),
) -> None:
    """Build every file under SOURCE into the data dir and activate it."""
    settings = ServerConfig(data_dir=data_dir) if data_dir else ServerConfig()
    try:
        files = collect_files(source)
        digest = Runtime(settings).builder.build(files)
    except (FileNotFoundError, HotdropError) as exc:
        console.print(f"[bold red]Deploy failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]Deployed[/bold green] {len(files)} file(s) into {settings.data_dir}"
    )
    console.print(f"[bold]{digest}[/bold]")
