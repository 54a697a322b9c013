"""Project aggregate root.

A Project owns its settings, its components, its signing configuration and
its packaging toggles. It is populated once by evaluating a project
description (see ``packforge.dsl``) and is read-only afterwards, apart from
the build updating component versions.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from packforge import __version__
from packforge.config import ForgeConfig
from packforge.core.component_graph import ComponentGraph
from packforge.core.errors import ConfigurationError, UpstreamFetchError
from packforge.core.settings_store import SettingsStore
from packforge.core.upstream import UpstreamLoader, publish_settings
from packforge.models.component import Component, Directory, PackageRelation
from packforge.models.signing import SigningConfig

if TYPE_CHECKING:
    from packforge.platforms.base import Platform

logger = logging.getLogger(__name__)

# Captured once per process so every manifest of a run agrees.
BUILD_TIME = datetime.now(timezone.utc).isoformat()

VENDOR_RE = re.compile(r"^(?P<name>.*?)\s*<(?P<email>[^<>@\s]+@[^<>\s]+)>\s*$")


class Project:
    """A buildable project on one platform.

    Parameters
    ----------
    name:
        Project name; also the basename of its description file.
    platform:
        Platform the project is packaged for. Its settings seed the
        project's settings.
    config:
        Global configuration; defaults to the platform's.
    upstream_loader:
        Fetcher for inherited settings; defaults to an ``UpstreamLoader``
        for ``platform``.
    """

    def __init__(
        self,
        name: str,
        platform: Platform,
        *,
        config: ForgeConfig | None = None,
        upstream_loader: UpstreamLoader | None = None,
    ) -> None:
        self.name = name
        self.platform = platform
        self.config = config or platform.config
        self.upstream_loader = upstream_loader or UpstreamLoader(platform, self.config)

        self.version: str | None = None
        self.release: str = "1"
        self.settings = SettingsStore(platform.settings)
        self.components: list[Component] = []
        self.signing = SigningConfig()

        self.repo: str | None = None
        self.directories: list[Directory] = []
        self._vendor: str | None = None
        self.identifier: str | None = None
        self.description: str | None = None
        self.homepage: str | None = None
        self.license: str | None = None
        self.noarch = False
        self.bill_of_materials: str | None = None
        self.version_file: str | None = None

        self.requires: list[PackageRelation] = []
        self.replaces: list[PackageRelation] = []
        self.provides: list[PackageRelation] = []
        self.conflicts: list[PackageRelation] = []
        self.environment: dict[str, str] = {}

        self.generate_packages = True
        self.compiled_archive = False
        self.yaml_settings = False

    def __repr__(self) -> str:
        return f"<Project name={self.name!r} platform={self.platform.name!r}>"

    # ------------------------------------------------------------------
    # Vendor
    # ------------------------------------------------------------------

    @property
    def vendor(self) -> str | None:
        return self._vendor

    @vendor.setter
    def vendor(self, value: str) -> None:
        if VENDOR_RE.match(value) is None:
            raise ConfigurationError(
                f"Project vendor field must include an email address in angle "
                f"brackets, e.g. 'Example Inc. <release@example.com>'. Got {value!r}"
            )
        self._vendor = value

    @property
    def vendor_name_only(self) -> str | None:
        """The vendor string with its ``<email>`` part removed."""
        if self._vendor is None:
            return None
        match = VENDOR_RE.match(self._vendor)
        return match.group("name") if match else None

    @property
    def vendor_email_only(self) -> str | None:
        """Just the address between the angle brackets."""
        if self._vendor is None:
            return None
        match = VENDOR_RE.match(self._vendor)
        return match.group("email") if match else None

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def graph(self) -> ComponentGraph:
        """Dependency graph over the components declared so far."""
        return ComponentGraph(self.components)

    def filter_component(self, name: str) -> list[Component]:
        """*name* plus every project component it transitively build-requires."""
        return self.graph.resolve(name)

    def get_root_directories(self) -> list[str]:
        """Declared directories with every nested one dropped."""
        paths = sorted({d.path.rstrip("/") or "/" for d in self.directories})
        roots: list[str] = []
        for path in paths:
            if not any(path.startswith(root.rstrip("/") + "/") for root in roots):
                roots.append(path)
        return roots

    def generate_dependencies_info(self) -> dict[str, dict[str, str]]:
        """Per-component ``version`` and git ``ref``, where known."""
        info: dict[str, dict[str, str]] = {}
        for component in self.components:
            entry: dict[str, str] = {}
            if component.version:
                entry["version"] = component.version
            ref = component.options.get("ref")
            if ref:
                entry["ref"] = str(ref)
            info[component.name] = entry
        return info

    # ------------------------------------------------------------------
    # Build metadata
    # ------------------------------------------------------------------

    def build_manifest(self) -> dict[str, Any]:
        return {
            "packaging_type": {"packforge": __version__},
            "version": self.version,
            "components": self.generate_dependencies_info(),
            "build_time": BUILD_TIME,
        }

    def build_manifest_json(self, pretty: bool = False) -> str:
        """The build manifest serialized as JSON."""
        if pretty:
            return json.dumps(self.build_manifest(), indent=2)
        return json.dumps(self.build_manifest())

    def save_manifest_json(self, platform: Platform, directory: Path | str = "ext") -> list[Path]:
        """Write the manifest as ``build_metadata.json`` and a per-project copy.

        Returns the paths written.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        manifest = self.build_manifest_json(pretty=True)
        paths = [
            directory / "build_metadata.json",
            directory / f"build_metadata.{self.name}.{platform.name}.json",
        ]
        for path in paths:
            path.write_text(manifest + "\n", encoding="utf-8")
        logger.info("Wrote build metadata for %s to %s", self.name, directory)
        return paths

    # ------------------------------------------------------------------
    # Settings inheritance
    # ------------------------------------------------------------------

    def load_upstream_settings(
        self, name: str, git_url: str, ref: str, *, required: bool = False
    ) -> None:
        """Bulk-merge the settings of upstream project *name* at *ref*.

        A fetch or evaluation failure is logged and leaves the settings
        untouched, unless *required* is set.
        """
        try:
            upstream = self.upstream_loader.project_settings(name, git_url, ref)
        except UpstreamFetchError as exc:
            if required:
                raise
            logger.error("Unable to inherit settings from %s: %s", name, exc)
            return
        self.settings.merge(upstream, source=f"{name}@{ref}")

    def load_yaml_settings(self, uri: str, checksum_uri: str | None = None) -> None:
        """Bulk-merge a published settings snapshot."""
        snapshot = self.upstream_loader.snapshot_settings(uri, checksum_uri)
        self.settings.merge(snapshot, source=uri)

    def publish_yaml_settings(
        self, platform: Platform, output_dir: Path | str | None = None
    ) -> tuple[Path, Path] | None:
        """Write this project's settings for *platform* to *output_dir*.

        Does nothing unless the description enabled publishing. Returns the
        (yaml, sha1) paths when written.
        """
        if not self.yaml_settings:
            return None
        if not self.version:
            raise ConfigurationError(
                f"Project {self.name} needs a version to publish settings"
            )
        target = Path(output_dir) if output_dir is not None else self.config.output_dir
        basename = f"{self.name}-{self.version}.{platform.name}"
        return publish_settings(self.settings.snapshot(), target, basename)

    # ------------------------------------------------------------------
    # Packaging
    # ------------------------------------------------------------------

    @property
    def package_name(self) -> str:
        return self.platform.package_name(self)

    def generate_package(self) -> list[str]:
        """Package commands, then archive commands, as toggled."""
        commands: list[str] = []
        if self.generate_packages:
            commands.extend(self.platform.generate_package(self))
        if self.compiled_archive:
            commands.extend(self.platform.generate_compiled_archive(self))
        return commands
