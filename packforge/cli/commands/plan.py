"""``packforge plan PROJECT PLATFORM``: print or run the packaging plan.

Prints the ordered commands ``generate_package`` produces. With
``--execute`` the commands are run with the shell executor, stopping at the
first failure.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from packforge.cli.common import CONFIGDIR_OPTION, console, fail, load_or_exit
from packforge.core.errors import PackforgeError
from packforge.core.executor import ShellExecutor
from packforge.core.hasher import content_address


def plan_cmd(
    project_name: str = typer.Argument(..., help="Project to load."),
    platform_name: str = typer.Argument(..., help="Platform, e.g. osx-15-arm64."),
    execute: bool = typer.Option(
        False,
        "--execute",
        "-x",
        help="Run the commands instead of only printing them.",
    ),
    workdir: Path = typer.Option(
        Path("."),
        "--workdir",
        "-w",
        help="Directory holding the built <name>-<version>.tar.gz.",
    ),
    configdir: Path = CONFIGDIR_OPTION,
) -> None:
    """Show the command plan that packages the project."""
    project = load_or_exit(project_name, platform_name, configdir)

    try:
        commands = project.generate_package()
    except PackforgeError as exc:
        raise fail(exc) from exc

    console.print(
        Panel(
            "\n".join(commands) or "[dim]No packaging output configured.[/dim]",
            title=f"[bold]{project.name} on {project.platform.name}[/bold]",
            subtitle=f"[dim]{len(commands)} command(s)  {content_address(commands)[:19]}[/dim]",
            border_style="cyan",
        )
    )

    if not execute:
        return

    try:
        ShellExecutor(workdir).run(commands)
    except PackforgeError as exc:
        raise fail(exc) from exc
    console.print("[bold green]Packaging finished.[/bold green]")
