"""macOS platforms (osx, macos)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from packforge.core.errors import ConfigurationError
from packforge.core.pipeline import PackagingContext, PackagingPipeline
from packforge.models.plan import PipelinePlan
from packforge.platforms.base import Platform
from packforge.stages import macos_stages

if TYPE_CHECKING:
    from packforge.core.project import Project


class MacOSPlatform(Platform):
    """Builds signed, optionally notarized ``.dmg`` installers.

    Homebrew refuses to run as root, so build dependencies go through the
    configured ``brew`` binary rather than a generic installer prefix.
    """

    family = "macos"
    mktemp = "mktemp -d -t 'tmp'"

    make = "/usr/bin/make"
    shasum = "/usr/bin/shasum"
    pkgbuild = "/usr/bin/pkgbuild"
    productbuild = "/usr/bin/productbuild"
    hdiutil = "/usr/bin/hdiutil"
    brew = "/usr/local/bin/brew"

    @property
    def is_macos(self) -> bool:
        return True

    def install_build_dependencies(self, build_dependencies: list[str]) -> str:
        return f"{self.brew} install {' '.join(build_dependencies)}"

    def package_name(self, project: Project) -> str:
        return (
            f"{project.name}-{project.version}-{project.release}."
            f"{self.os_name}.{self.os_version}.{self.architecture}.dmg"
        )

    def plan(self, project: Project) -> PipelinePlan:
        """Run the macOS stage pipeline for *project*.

        Raises ``ConfigurationError`` when the project lacks the version or
        identifier the installer metadata needs.
        """
        if not project.version:
            raise ConfigurationError(
                f"Project {project.name} needs a version to build a macOS package"
            )
        if not project.identifier:
            raise ConfigurationError(
                f"Project {project.name} needs an identifier to build a macOS package"
            )
        context = PackagingContext(project, self)
        return PackagingPipeline(macos_stages()).plan(context)

    def generate_package(self, project: Project) -> list[str]:
        return self.plan(project).commands
