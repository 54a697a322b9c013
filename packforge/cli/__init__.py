"""packforge CLI: Typer-based command-line interface.

Provides the ``packforge`` command with subcommands for resolving component
build sets, inspecting merged settings, printing or running package plans,
and publishing settings snapshots.

All output uses Rich for formatted terminal display.
"""
