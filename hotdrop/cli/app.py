"""Main Typer application — imports and registers all CLI commands.

Entry point: ``hotdrop`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from hotdrop.cli.commands.deploy import deploy_cmd
from hotdrop.cli.commands.push import push_cmd
from hotdrop.cli.commands.serve import serve_cmd
from hotdrop.cli.commands.status import status_cmd

app = typer.Typer(
    name="hotdrop",
    help="hotdrop: hot-swappable code deployment over a content-addressed store.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="serve", help="Run the hotdrop HTTP server.")(serve_cmd)
app.command(name="push", help="Push a directory to a remote hotdrop server.")(push_cmd)
app.command(name="deploy", help="Deploy a directory into a local data dir.")(deploy_cmd)
app.command(name="status", help="Show the active deployment.")(status_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
