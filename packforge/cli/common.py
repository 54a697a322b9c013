"""Helpers shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from packforge.config import ForgeConfig
from packforge.core.errors import PackforgeError
from packforge.core.project import Project
from packforge.dsl import load_description

console = Console()


def fail(exc: PackforgeError) -> typer.Exit:
    """Print *exc* in red and return the exit to raise."""
    console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}")
    return typer.Exit(code=1)


def load_or_exit(
    project_name: str,
    platform_name: str,
    configdir: Path | None,
    *,
    include_components: list[str] | None = None,
) -> Project:
    """Load a project description, turning errors into exit code 1."""
    config = ForgeConfig()
    try:
        return load_description(
            project_name,
            platform_name,
            configdir or config.configdir,
            config=config,
            include_components=include_components or (),
        )
    except PackforgeError as exc:
        raise fail(exc) from exc


CONFIGDIR_OPTION = typer.Option(
    None,
    "--configdir",
    "-c",
    help="Directory holding projects/, components/ and platforms/ (default: PACKFORGE_CONFIGDIR).",
)
