"""Platform strategy base class.

A platform is the capability set a project is packaged through:
``generate_package``, ``package_name``, ``install_build_dependencies``,
``generate_compiled_archive`` and ``output_dir``. One subclass exists per OS
family; the variant is chosen once, when the platform description is
loaded, and the project holds it for the rest of the run.
"""

from __future__ import annotations

import abc
import posixpath
import re
import shlex
from typing import TYPE_CHECKING, Any, ClassVar

from packforge.config import ForgeConfig
from packforge.core.errors import ConfigurationError

if TYPE_CHECKING:
    from packforge.core.project import Project
    from packforge.core.signer import Signer

PLATFORM_NAME_RE = re.compile(
    r"^(?P<os_name>.+)-(?P<os_version>[^-]+)-(?P<architecture>[^-]+)$"
)


class Platform(abc.ABC):
    """Abstract base for all platform variants.

    Subclasses **must** implement ``generate_package`` and ``package_name``.
    Everything else has a working default.

    Parameters
    ----------
    name:
        ``<os_name>-<os_version>-<architecture>``, e.g. ``osx-15-arm64``.
    config:
        Global toggles consulted while planning.
    signer:
        Signer used for extra-file signing stages.
    """

    # OS family label, e.g. "deb", "rpm", "macos", "windows".
    family: ClassVar[str] = ""

    tar: str = "tar"
    mktemp: str = "mktemp -d -p /var/tmp"
    default_build_dependency_installer: ClassVar[str] = ""

    def __init__(
        self,
        name: str,
        *,
        config: ForgeConfig | None = None,
        signer: Signer | None = None,
    ) -> None:
        match = PLATFORM_NAME_RE.match(name)
        if match is None:
            raise ConfigurationError(
                f"Platform name {name!r} must look like <os>-<version>-<arch>"
            )
        self.name = name
        self.os_name = match.group("os_name")
        self.os_version = match.group("os_version")
        self.architecture = match.group("architecture")

        self.config = config or ForgeConfig()
        self._signer = signer

        self.settings: dict[str, Any] = {}
        self.codename: str | None = None
        self.servicedir: str | None = None
        self.servicetype: str | None = None
        self.defaultdir: str | None = None
        self.dist: str | None = None
        self.provisioning: list[str] = []
        self.build_dependency_installer = self.default_build_dependency_installer

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def generate_package(self, project: Project) -> list[str]:
        """Commands that turn the built source tarball into a package."""
        ...

    @abc.abstractmethod
    def package_name(self, project: Project) -> str:
        """File name of the package ``generate_package`` produces."""
        ...

    # ------------------------------------------------------------------
    # Shared capabilities
    # ------------------------------------------------------------------

    @property
    def is_macos(self) -> bool:
        return False

    @property
    def signer(self) -> Signer:
        if self._signer is None:
            from packforge.core.signer import Signer

            self._signer = Signer(self.config)
        return self._signer

    def output_dir(self, target_repo: str | None = None) -> str:
        """Relative output directory: ``<os>/<version>/[<repo>/]<arch>``."""
        parts = [self.os_name, self.os_version, target_repo or "", self.architecture]
        return posixpath.join(*[p for p in parts if p])

    def install_build_dependencies(self, build_dependencies: list[str]) -> str:
        """Single command installing every external build dependency."""
        return f"{self.build_dependency_installer} {' '.join(build_dependencies)}".strip()

    def generate_compiled_archive(self, project: Project) -> list[str]:
        """Commands that ship the built tree as a plain tarball with metadata."""
        name_and_version = f"{project.name}-{project.version}"
        archive = f"{name_and_version}.{self.name}"
        metadata = shlex.quote(project.build_manifest_json())
        return [
            "mkdir -p output",
            f"mkdir -p {project.name}-archive",
            f"gunzip -c {name_and_version}.tar.gz | '{self.tar}' -C {project.name}-archive -xf -",
            f"cd {project.name}-archive/{name_and_version}; "
            f"rm -rf usr/lib/debug; {self.tar} cf ../../{archive}.tar *",
            f"gzip -9c {archive}.tar > output/{archive}.tar.gz",
            f"printf '%s\\n' {metadata} > output/{archive}.json",
            f"rm {archive}.tar",
        ]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
