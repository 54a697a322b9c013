"""Error taxonomy shared across packforge.

Configuration and verification errors abort a build before any packaging
command runs. Connectivity errors are recovered locally unless a caller
escalates them. Graph resolution never raises.
"""

from __future__ import annotations


class PackforgeError(RuntimeError):
    """Base class for every error packforge raises on purpose."""


class ConfigurationError(PackforgeError):
    """Raised when a project, component, or platform description is invalid."""


class VerificationError(PackforgeError):
    """Raised when a checksum or signature cannot be verified."""


class SettingsSourceNotFoundError(PackforgeError, FileNotFoundError):
    """Raised when a local settings snapshot does not exist."""


class ConnectivityError(PackforgeError):
    """Raised when a remote host cannot be reached."""


class UpstreamFetchError(PackforgeError):
    """Raised when an upstream project cannot be fetched or evaluated."""


class CommandFailedError(PackforgeError):
    """Raised when a planned command exits non-zero during execution."""

    def __init__(self, command: str, returncode: int, index: int) -> None:
        super().__init__(
            f"Command {index} exited with status {returncode}: {command}"
        )
        self.command = command
        self.returncode = returncode
        self.index = index
