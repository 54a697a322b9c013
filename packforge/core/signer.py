"""Extra-file signing sub-protocol.

Builds the commands that ship each extra file to a signing host, run the
configured signing commands on it, and bring the signed file back. Signing
is best-effort: if the signing host cannot be reached the build continues
unsigned, unless force-signing is on, in which case the connectivity error
aborts the build.

Per file, in declaration order, exactly five commands are emitted:

    1. truncate the sign script
    2. append the rendered signing line to the script
    3. copy the file local -> remote
    4. run the sign script
    5. copy the signed file remote -> local, over the original
"""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING

from packforge.config import ForgeConfig
from packforge.core.errors import ConnectivityError
from packforge.core.remote import (
    ProbeRunner,
    SubprocessProbeRunner,
    probe_with_retries,
    rsync_command,
    ssh_command,
)
from packforge.models.signing import SigningRequest

if TYPE_CHECKING:
    from packforge.core.project import Project

logger = logging.getLogger(__name__)


class Signer:
    """Plans extra-file signing for a project.

    Parameters
    ----------
    config:
        Global toggles and ssh transport settings.
    probe_runner:
        Runs the connectivity probe. Defaults to a subprocess runner.
    retry_delay:
        Seconds between probe attempts.
    """

    def __init__(
        self,
        config: ForgeConfig,
        probe_runner: ProbeRunner | None = None,
        *,
        retry_delay: float = 1.0,
    ) -> None:
        self._config = config
        self._probe = probe_runner or SubprocessProbeRunner(config)
        self._retry_delay = retry_delay

    def commands(self, project: Project, mktemp: str, source_dir: str) -> list[str]:
        """Return the signing commands for every extra file of *project*.

        *mktemp* is the command that creates the temporary signing
        directory; its output doubles as the connectivity probe.
        *source_dir* is the staging path (relative to ``$(tempdir)``)
        holding the files.
        """
        signing = project.signing
        if not signing.extra_files:
            return []

        host = None if signing.use_local_signing else signing.remote_host
        try:
            temp_dir = probe_with_retries(
                self._probe,
                host,
                f"{mktemp} 2>/dev/null",
                attempts=self._config.signing_probe_attempts,
                timeout=self._config.signing_probe_timeout,
                delay=self._retry_delay,
            )
        except ConnectivityError:
            logger.error(
                "Unable to connect to %s, skipping signing extra files: %s",
                host or "localhost",
                ",".join(signing.extra_files),
            )
            if self._config.force_signing:
                raise
            return []

        request = SigningRequest(
            files=list(signing.extra_files),
            templates=list(signing.commands),
            remote_host=signing.remote_host,
            temp_dir=temp_dir,
            local=signing.use_local_signing,
        )
        extended_attributes = project.platform.is_macos

        if request.local:
            return self._local_commands(request, source_dir, extended_attributes)
        return self._remote_commands(request, source_dir, extended_attributes)

    # ------------------------------------------------------------------
    # Command builders
    # ------------------------------------------------------------------

    def _remote_commands(
        self, request: SigningRequest, source_dir: str, extended_attributes: bool
    ) -> list[str]:
        ssh = ssh_command(self._config)
        host = request.remote_host
        destination = f"{host}:{request.temp_dir}"
        commands: list[str] = []
        for file in request.files:
            local_path = _local_source_path(source_dir, file)
            commands += [
                f'{ssh} {host} "echo > {request.script_path}"',
                f"{ssh} {host} \"echo '{request.rendered_line(file)}' >> {request.script_path}\"",
                rsync_command(
                    local_path, destination,
                    config=self._config, extended_attributes=extended_attributes,
                ),
                f"{ssh} {host} /bin/bash {request.script_path}",
                rsync_command(
                    f"{destination}/{posixpath.basename(file)}", local_path,
                    config=self._config, extended_attributes=extended_attributes,
                ),
            ]
        return commands

    @staticmethod
    def _local_commands(
        request: SigningRequest, source_dir: str, extended_attributes: bool
    ) -> list[str]:
        commands: list[str] = []
        for file in request.files:
            local_path = _local_source_path(source_dir, file)
            commands += [
                f"echo > {request.script_path}",
                f"echo '{request.rendered_line(file)}' >> {request.script_path}",
                rsync_command(
                    local_path, request.temp_dir,
                    extended_attributes=extended_attributes,
                ),
                f"/bin/bash {request.script_path}",
                rsync_command(
                    request.remote_path(file), local_path,
                    extended_attributes=extended_attributes,
                ),
            ]
        return commands


def _local_source_path(source_dir: str, file: str) -> str:
    # Exactly one slash between the staging dir and the file path
    return f"$(tempdir){source_dir.rstrip('/')}/{file.lstrip('/')}"
