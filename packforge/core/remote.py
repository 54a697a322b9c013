"""Remote shell helpers for the signing transport.

Two concerns live here:

- Building command *strings* (ssh, rsync) that go into a plan. These are
  pure and never touch the network.
- Running a short probe command right now, over ssh or locally, to learn
  whether the signing host is reachable. This is the only place the
  planning phase performs I/O.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from typing import Protocol, runtime_checkable

from packforge.config import ForgeConfig
from packforge.core.errors import ConnectivityError

logger = logging.getLogger(__name__)

RSYNC_FLAGS = "--verbose --recursive --hard-links --links --no-perms --no-owner --no-group"


def ssh_command(config: ForgeConfig) -> str:
    """Base ssh invocation used for every remote signing step."""
    key_flag = f"-i {config.ssh_key}" if config.ssh_key else ""
    return (
        f"/usr/bin/ssh -p {config.ssh_port} {key_flag} "
        "-o UserKnownHostsFile=/dev/null -o StrictHostKeyChecking=no"
    )


def rsync_command(
    source: str,
    destination: str,
    *,
    config: ForgeConfig | None = None,
    extended_attributes: bool = False,
) -> str:
    """rsync preserving links and hard links.

    With *config* the transfer goes over ssh; without it the copy is local.
    """
    extra_flags = "--extended-attributes" if extended_attributes else ""
    transport = f"-e '{ssh_command(config)}' " if config is not None else ""
    return f"rsync {transport}{RSYNC_FLAGS} {extra_flags} {source} {destination}"


# ---------------------------------------------------------------------------
# Probe runners
# ---------------------------------------------------------------------------


@runtime_checkable
class ProbeRunner(Protocol):
    """Runs a short command and returns its stripped stdout.

    ``host`` of None means run locally. Implementations raise
    ``ConnectivityError`` on any failure.
    """

    def run(self, host: str | None, command: str, *, timeout: int) -> str:
        ...


class SubprocessProbeRunner:
    """Default probe runner backed by ``subprocess``."""

    def __init__(self, config: ForgeConfig) -> None:
        self._config = config

    def run(self, host: str | None, command: str, *, timeout: int) -> str:
        if host is None:
            argv = ["/bin/sh", "-c", command]
        else:
            argv = shlex.split(ssh_command(self._config)) + [host, command]
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except (subprocess.SubprocessError, OSError) as exc:
            raise ConnectivityError(
                f"Probe {command!r} on {host or 'localhost'} failed: {exc}"
            ) from exc
        if proc.returncode != 0:
            raise ConnectivityError(
                f"Probe {command!r} on {host or 'localhost'} exited "
                f"{proc.returncode}: {proc.stderr.strip()}"
            )
        return proc.stdout.strip()


def probe_with_retries(
    runner: ProbeRunner,
    host: str | None,
    command: str,
    *,
    attempts: int,
    timeout: int,
    delay: float = 1.0,
) -> str:
    """Run a probe up to *attempts* times; re-raise the last failure."""
    last_error: ConnectivityError | None = None
    for attempt in range(1, max(attempts, 1) + 1):
        try:
            return runner.run(host, command, timeout=timeout)
        except ConnectivityError as exc:
            last_error = exc
            logger.warning(
                "Probe attempt %d/%d on %s failed: %s",
                attempt, attempts, host or "localhost", exc,
            )
            if attempt < attempts and delay:
                time.sleep(delay)
    if last_error is None:
        raise ConnectivityError(f"No probe attempts made on {host or 'localhost'}")
    raise last_error
