"""Debian-like platforms (debian, ubuntu)."""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from packforge.platforms.base import Platform

if TYPE_CHECKING:
    from packforge.core.project import Project


class DebPlatform(Platform):
    """Builds ``.deb`` packages with ``debuild``."""

    family = "deb"
    default_build_dependency_installer = (
        "DEBIAN_FRONTEND=noninteractive; apt-get install -qy --no-install-recommends"
    )

    debuild = "/usr/bin/debuild"

    def output_dir(self, target_repo: str | None = None) -> str:
        """``deb/<codename>/[<repo>]``; falls back to the OS version."""
        parts = ["deb", self.codename or self.os_version, target_repo or ""]
        return posixpath.join(*[p for p in parts if p])

    def package_name(self, project: Project) -> str:
        arch = "all" if project.noarch else self.architecture
        codename = self.codename or ""
        return f"{project.name}_{project.version}-{project.release}{codename}_{arch}.deb"

    def generate_package(self, project: Project) -> list[str]:
        target_dir = self.output_dir(project.repo)
        name_and_version = f"{project.name}-{project.version}"
        pkg_dir = f"$(tempdir)/{name_and_version}"
        return [
            f"mkdir -p output/{target_dir}",
            f"mkdir -p {pkg_dir}",
            f"cp {name_and_version}.tar.gz "
            f"$(tempdir)/{project.name}_{project.version}.orig.tar.gz",
            f"cp -pr debian {pkg_dir}",
            f"gunzip -c {name_and_version}.tar.gz | '{self.tar}' "
            f"-C '{pkg_dir}' --strip-components 1 -xf -",
            f"(cd {pkg_dir}; {self.debuild} --no-lintian -uc -us)",
            f"cp $(tempdir)/*.deb ./output/{target_dir}",
        ]
