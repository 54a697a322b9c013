"""``packforge resolve PROJECT PLATFORM``: show component build sets.

For each component (or just ``--component``), lists the component and every
project component it transitively build-requires, in build order, plus the
external packages it needs from the system.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from packforge.cli.common import CONFIGDIR_OPTION, console, load_or_exit


def resolve_cmd(
    project_name: str = typer.Argument(..., help="Project to load."),
    platform_name: str = typer.Argument(..., help="Platform, e.g. osx-15-arm64."),
    component: str = typer.Option(
        None,
        "--component",
        "-C",
        help="Only resolve this component.",
    ),
    configdir: Path = CONFIGDIR_OPTION,
) -> None:
    """Resolve build-dependency closures for a project's components."""
    project = load_or_exit(project_name, platform_name, configdir)
    graph = project.graph

    roots = [component] if component else graph.names
    if component and component not in graph:
        console.print(f"[yellow]No component named {component} in {project.name}.[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"{project.name} on {project.platform.name}")
    table.add_column("Component", style="cyan")
    table.add_column("Build order", style="green")
    table.add_column("External requirements", style="dim")

    for name in roots:
        closure = graph.resolve_names(name)
        external = sorted({r for n in closure for r in graph.external_requirements(n)})
        table.add_row(name, " -> ".join(closure), ", ".join(external) or "-")

    console.print(table)
