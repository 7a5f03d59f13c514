"""hotdrop CLI — Typer-based command-line interface.

Provides the ``hotdrop`` command with subcommands for running the server,
pushing a directory to a remote server, deploying into a local data
directory, and inspecting the active deployment.

All output uses Rich for formatted terminal display.
"""
