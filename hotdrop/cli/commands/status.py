"""``hotdrop status`` — show the active deployment and its files."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from hotdrop.config import ServerConfig
from hotdrop.core.builder import DeploymentBuilder
from hotdrop.core.blob_store import BlobStore
from hotdrop.core.registry import DeploymentRegistry

console = Console()


def status_cmd(
    data_dir: Path = typer.Option(
        None, "--data-dir", "-d", help="Storage root (default from config)."
    ),
    verify: bool = typer.Option(
        False, "--verify", help="Re-hash every stored blob and flag corrupt ones."
    ),
) -> None:
    """Print the active deployment digest and list its files."""
    settings = ServerConfig(data_dir=data_dir) if data_dir else ServerConfig()
    blob_store = BlobStore(settings.blobs_path)
    registry = DeploymentRegistry(settings.pointer_path)
    digest = registry.current()
    if digest is None:
        console.print("[dim]No deployment published.[/dim]")
    else:
        builder = DeploymentBuilder(blob_store, settings.deployments_path, registry)
        table = Table(title=f"Deployment {digest[:12]}")
        table.add_column("File", style="cyan")
        table.add_column("Size", justify="right")
        root = builder.deployment_path(digest)
        for name in builder.list_files(digest):
            table.add_row(name, str((root / name).stat().st_size))

        console.print(f"[bold]Active deployment:[/bold] {digest}")
        console.print(table)

    if verify:
        _verify_blobs(blob_store)


def _verify_blobs(blob_store: BlobStore) -> None:
    checked = 0
    corrupt: list[str] = []
    for blob_digest in blob_store.digests():
        checked += 1
        if not blob_store.verify(blob_digest):
            corrupt.append(blob_digest)

    if not corrupt:
        console.print(f"[bold green]All {checked} blob(s) verified.[/bold green]")
        return

    for blob_digest in corrupt:
        console.print(f"[bold red]Corrupt blob:[/bold red] {blob_digest}")
    console.print(f"[bold red]{len(corrupt)} of {checked} blob(s) failed verification.[/bold red]")
    raise typer.Exit(code=1)
