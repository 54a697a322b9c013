"""Runtime configuration: env-driven global toggles.

Centralized config using pydantic-settings for environment variable support.
Reads from a .env file and PACKFORGE_* environment variables.

The signing toggles are load-bearing for the packaging pipeline: they decide
whether any code-signing, notarization, or signature-verification stage is
planned at all.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ForgeConfig(BaseSettings):
    """Global configuration with environment variable overrides.

    All settings can be overridden via PACKFORGE_* environment variables
    or a .env file in the working directory.

    Examples
    --------
    Force signing on a CI signer node::

        export PACKFORGE_FORCE_SIGNING=true
        export PACKFORGE_SSH_KEY=~/.ssh/signer_id_rsa

    Sign but skip the notarization round-trip::

        PACKFORGE_FORCE_SIGNING=true
        PACKFORGE_NO_NOTARIZE=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PACKFORGE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Description layout
    configdir: Path = Path("configs")
    output_dir: Path = Path("output")

    # Signing toggles
    force_signing: bool = False
    no_notarize: bool = False

    # Remote signing transport
    ssh_key: Path | None = None
    ssh_port: int = 22
    signing_probe_attempts: int = 3
    signing_probe_timeout: int = 5

    # Snapshot fetches
    http_timeout: int = 30

    @property
    def notarization_enabled(self) -> bool:
        """Whether the notarization stage should be planned."""
        return self.force_signing and not self.no_notarize
