"""``packforge settings PROJECT PLATFORM``: show merged project settings."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from packforge.cli.common import CONFIGDIR_OPTION, console, load_or_exit


def settings_cmd(
    project_name: str = typer.Argument(..., help="Project to load."),
    platform_name: str = typer.Argument(..., help="Platform, e.g. osx-15-arm64."),
    as_yaml: bool = typer.Option(
        False,
        "--yaml",
        help="Print the settings as YAML instead of a table.",
    ),
    configdir: Path = CONFIGDIR_OPTION,
) -> None:
    """Show the project's settings after platform, upstream and local writes."""
    project = load_or_exit(project_name, platform_name, configdir)

    if as_yaml:
        typer.echo(project.settings.to_yaml(), nl=False)
        return

    table = Table(title=f"Settings: {project.name} on {project.platform.name}")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key in sorted(project.settings):
        table.add_row(key, repr(project.settings[key]))
    console.print(table)
