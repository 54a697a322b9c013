"""Main Typer application: imports and registers all CLI commands.

Entry point: ``packforge`` (configured via pyproject.toml console scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from packforge.cli.commands.plan import plan_cmd
from packforge.cli.commands.publish import publish_cmd
from packforge.cli.commands.resolve import resolve_cmd
from packforge.cli.commands.settings_cmd import settings_cmd
from packforge.config import ForgeConfig

app = typer.Typer(
    name="packforge",
    help="packforge: cross-platform package-build orchestrator.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log at DEBUG level."
    ),
) -> None:
    """Configure logging before any command runs."""
    level = "DEBUG" if verbose else ForgeConfig().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="resolve", help="Show component build order.")(resolve_cmd)
app.command(name="settings", help="Show merged project settings.")(settings_cmd)
app.command(name="plan", help="Print (or run) the packaging plan.")(plan_cmd)
app.command(name="publish-settings", help="Publish a settings snapshot.")(publish_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
