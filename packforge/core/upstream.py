"""Settings inheritance from upstream projects and published snapshots.

Two ways to obtain a key → value map to bulk-merge into a project's
settings:

1. *Live*: clone an upstream project's description repository at a ref and
   evaluate its project description in isolation.
2. *Static*: fetch a YAML snapshot published by ``publish_settings`` and
   verify it against its SHA-1 companion.

Both only produce the map; merging is done by the caller at its position
in the description so that last-write-wins holds.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import requests
import yaml

from packforge.config import ForgeConfig
from packforge.core.errors import (
    ConfigurationError,
    UpstreamFetchError,
    VerificationError,
)
from packforge.core.hasher import file_digest, parse_checksum_text, verify_file_digest
from packforge.core.sources import (
    GitSource,
    SourceKind,
    determine_source_kind,
    fetch_checksum,
    file_source,
)

if TYPE_CHECKING:
    from packforge.platforms.base import Platform

logger = logging.getLogger(__name__)

CHECKSUM_ALGORITHM = "sha1"


class UpstreamLoader:
    """Fetches upstream settings maps.

    Parameters
    ----------
    platform:
        The platform the local project is being evaluated for. Upstream
        projects are evaluated for a platform of the same name.
    config:
        Global configuration (timeouts).
    session:
        Optional requests session for snapshot downloads.
    """

    def __init__(
        self,
        platform: Platform,
        config: ForgeConfig | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self._platform = platform
        self._config = config or ForgeConfig()
        self._session = session

    # ------------------------------------------------------------------
    # Live upstream project
    # ------------------------------------------------------------------

    def project_settings(self, name: str, git_url: str, ref: str) -> dict[str, Any]:
        """Evaluate upstream project *name* at *ref* and return its settings.

        Raises ``UpstreamFetchError`` if the source cannot be fetched or the
        description cannot be evaluated.
        """
        # Deferred: description loading builds Projects, which use this module
        from packforge.dsl import load_platform_description, load_project

        source = GitSource(git_url, ref)
        with tempfile.TemporaryDirectory(prefix="packforge-upstream-") as workdir:
            try:
                tree = source.fetch(Path(workdir))
                configs = tree / "configs"
                upstream_platform = load_platform_description(
                    self._platform.name, configs / "platforms", config=self._config
                )
                upstream = load_project(
                    name, configs, upstream_platform, config=self._config
                )
            except UpstreamFetchError:
                raise
            except Exception as exc:
                raise UpstreamFetchError(
                    f"Unable to evaluate upstream project {name} from "
                    f"{git_url}@{ref}: {exc}"
                ) from exc
            return upstream.settings.snapshot()

    # ------------------------------------------------------------------
    # Published snapshot
    # ------------------------------------------------------------------

    def snapshot_settings(
        self, uri: str, checksum_uri: str | None = None
    ) -> dict[str, Any]:
        """Fetch, verify, and parse a published settings snapshot.

        ``file://`` sources are verified only when *checksum_uri* is given;
        ``http(s)://`` sources require it.
        """
        timeout = self._config.http_timeout
        source = file_source(uri, timeout=timeout, session=self._session)
        kind = determine_source_kind(uri)

        with tempfile.TemporaryDirectory(prefix="packforge-settings-") as workdir:
            if kind is SourceKind.HTTP and not checksum_uri:
                raise VerificationError(
                    f"Settings from {uri} need a checksum URI to be verified"
                )
            try:
                path = source.fetch(Path(workdir))
            except requests.RequestException as exc:
                raise VerificationError(f"Unable to download {uri}: {exc}") from exc

            if checksum_uri:
                expected = parse_checksum_text(
                    fetch_checksum(checksum_uri, timeout=timeout, session=self._session)
                )
                verify_file_digest(path, expected, CHECKSUM_ALGORITHM)

            return _parse_settings_yaml(path)


def _parse_settings_yaml(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Malformed settings snapshot {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Settings snapshot root must be a mapping: {path}")
    return {str(k): v for k, v in data.items()}


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


def publish_settings(
    settings: Mapping[str, Any], output_dir: Path, basename: str
) -> tuple[Path, Path]:
    """Write *settings* as ``<basename>.settings.yaml`` plus a ``.sha1`` file.

    Returns the (yaml_path, sha1_path) pair. The output directory must
    already exist.
    """
    output_dir = Path(output_dir)
    yaml_path = output_dir / f"{basename}.settings.yaml"
    sha1_path = output_dir / f"{basename}.settings.yaml.sha1"

    with open(yaml_path, "w", encoding="utf-8") as f:
        f.write(yaml.safe_dump(dict(settings), default_flow_style=False, sort_keys=True))
    with open(sha1_path, "w", encoding="utf-8") as f:
        f.write(file_digest(yaml_path, CHECKSUM_ALGORITHM) + "\n")

    logger.info("Published settings to %s", yaml_path)
    return yaml_path, sha1_path
