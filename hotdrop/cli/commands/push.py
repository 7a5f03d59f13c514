"""``hotdrop push DIR`` — deploy a directory to a remote server."""

from __future__ import annotations

from pathlib import Path

import httpx
import typer
from rich.console import Console

from hotdrop.client import DeployClient, DeployRejected, collect_files
from hotdrop.config import config

console = Console()


def push_cmd(
    source: Path = typer.Argument(..., help="Directory holding the deployment files."),
    url: str = typer.Option(
        None, "--url", "-u", help="Server URL (default: HOTDROP_SERVER_URL)."
    ),
    token: str = typer.Option(
        None,
        "--token",
        "-t",
        envvar="HOTDROP_DEPLOY_TOKEN",
        help="Deploy token.",
    ),
    full: bool = typer.Option(
        False, "--full", help="Always upload content, even for known blobs."
    ),
) -> None:
    """Push every file under SOURCE and make it the active deployment."""
    try:
        files = collect_files(source)
    except FileNotFoundError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)
    if not files:
        console.print(f"[bold red]No files under {source}[/bold red]")
        raise typer.Exit(code=1)

    target = url or config.server_url
    deploy_token = token if token is not None else config.deploy_token.get_secret_value()
    try:
        with DeployClient(target, deploy_token) as client:
            result = client.push(files, lean=not full)
    except DeployRejected as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)
    except httpx.HTTPError as exc:
        console.print(f"[bold red]Could not reach {target}:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]Deployed[/bold green] {result.files} file(s) to {target}"
    )
    console.print(f"[bold]{result.deployment}[/bold]")
