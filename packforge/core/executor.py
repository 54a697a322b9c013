"""Sequential, fail-fast execution of a command plan.

Plan commands are written make-style: ``$(tempdir)`` names the run's
scratch directory and ``$$VAR`` is a shell variable reference. The executor
renders both before handing each command to ``/bin/sh``.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from collections.abc import Sequence
from pathlib import Path

from packforge.core.errors import CommandFailedError

logger = logging.getLogger(__name__)

TEMPDIR_TOKEN = "$(tempdir)"


def render_command(command: str, tempdir: str) -> str:
    """Substitute the scratch directory and unescape ``$$``."""
    return command.replace(TEMPDIR_TOKEN, tempdir).replace("$$", "$")


class ShellExecutor:
    """Runs commands one by one and stops at the first failure.

    Parameters
    ----------
    workdir:
        Directory the commands run in (where the built tarball lives).
    tempdir:
        Scratch directory for ``$(tempdir)``. A fresh one is created per
        ``run()`` and removed afterwards when not given.
    dry_run:
        Log the rendered commands without running them.
    """

    def __init__(
        self,
        workdir: Path | str = ".",
        *,
        tempdir: Path | str | None = None,
        dry_run: bool = False,
    ) -> None:
        self.workdir = Path(workdir)
        self.tempdir = Path(tempdir) if tempdir is not None else None
        self.dry_run = dry_run

    def run(self, commands: Sequence[str]) -> list[str]:
        """Execute *commands* in order; returns the rendered commands run.

        Raises ``CommandFailedError`` for the first non-zero exit; later
        commands are not started.
        """
        owned_tempdir = self.tempdir is None
        tempdir = self.tempdir or Path(tempfile.mkdtemp(prefix="packforge-"))
        try:
            return self._run_all(commands, str(tempdir))
        finally:
            if owned_tempdir:
                shutil.rmtree(tempdir, ignore_errors=True)

    def _run_all(self, commands: Sequence[str], tempdir: str) -> list[str]:
        executed: list[str] = []
        for index, command in enumerate(commands):
            rendered = render_command(command, tempdir)
            if self.dry_run:
                logger.info("[dry-run] %s", rendered)
                executed.append(rendered)
                continue

            logger.info("Running [%d/%d]: %s", index + 1, len(commands), rendered)
            proc = subprocess.run(["/bin/sh", "-c", rendered], cwd=self.workdir)
            if proc.returncode != 0:
                logger.error("Command %d exited %d: %s", index, proc.returncode, rendered)
                raise CommandFailedError(rendered, proc.returncode, index)
            executed.append(rendered)
        return executed
