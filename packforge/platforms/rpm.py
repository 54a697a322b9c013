"""RPM-like platforms (el, fedora, sles, redhatfips, amazon)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from packforge.platforms.base import Platform

if TYPE_CHECKING:
    from packforge.core.project import Project


class RpmPlatform(Platform):
    """Builds ``.rpm`` packages with ``rpmbuild``."""

    family = "rpm"
    default_build_dependency_installer = "/usr/bin/dnf install -y --best --allowerasing"

    rpmbuild = "/usr/bin/rpmbuild"

    def package_name(self, project: Project) -> str:
        arch = "noarch" if project.noarch else self.architecture
        dist = f".{self.dist}" if self.dist else ""
        return f"{project.name}-{project.version}-{project.release}{dist}.{arch}.rpm"

    def generate_package(self, project: Project) -> list[str]:
        target_dir = self.output_dir(project.repo)
        topdir = "$(tempdir)/rpmbuild"
        target = "noarch" if project.noarch else self.architecture
        return [
            f"bash -c 'mkdir -p {topdir}/{{SOURCES,SPECS,BUILD,RPMS,SRPMS}}'",
            f"cp {project.name}-{project.version}.tar.gz {topdir}/SOURCES",
            f"cp {project.name}.spec {topdir}/SPECS",
            f"{self.rpmbuild} -bb --define '_topdir {topdir}' --target {target} "
            f"{topdir}/SPECS/{project.name}.spec",
            f"mkdir -p output/{target_dir}",
            f"cp {topdir}/RPMS/*/*.rpm ./output/{target_dir}",
        ]
