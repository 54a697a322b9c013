"""``packforge publish-settings PROJECT PLATFORM``: write a settings snapshot.

Writes ``<name>-<version>.<platform>.settings.yaml`` and its ``.sha1``
companion so downstream projects can ``inherit_yaml_settings`` from it.
"""

from __future__ import annotations

from pathlib import Path

import typer

from packforge.cli.common import CONFIGDIR_OPTION, console, fail, load_or_exit
from packforge.core.errors import PackforgeError


def publish_cmd(
    project_name: str = typer.Argument(..., help="Project to load."),
    platform_name: str = typer.Argument(..., help="Platform, e.g. osx-15-arm64."),
    output_dir: Path = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory to write into (default: PACKFORGE_OUTPUT_DIR).",
    ),
    configdir: Path = CONFIGDIR_OPTION,
) -> None:
    """Publish the project's settings for other projects to inherit."""
    project = load_or_exit(project_name, platform_name, configdir)
    target = output_dir or project.config.output_dir
    target.mkdir(parents=True, exist_ok=True)

    try:
        written = project.publish_yaml_settings(project.platform, target)
    except PackforgeError as exc:
        raise fail(exc) from exc

    if written is None:
        console.print(
            f"[yellow]{project.name} does not publish settings "
            "(add proj.publish_yaml_settings() to its description).[/yellow]"
        )
        return

    yaml_path, sha1_path = written
    console.print(f"[bold green]Published[/bold green] {yaml_path}")
    console.print(f"[dim]{sha1_path}[/dim]")
