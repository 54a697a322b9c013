"""Windows platforms.

Packages ship as a zip of the staged tree. Extra files are signed through
the Signer whenever the project declares any, independent of the
force-signing toggle; the toggle only decides whether an unreachable
signing host is fatal.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from packforge.platforms.base import Platform

if TYPE_CHECKING:
    from packforge.core.project import Project


class WindowsPlatform(Platform):
    family = "windows"
    default_build_dependency_installer = "C:/ProgramData/chocolatey/bin/choco.exe install -y"

    zip = "/usr/bin/zip"

    def package_name(self, project: Project) -> str:
        return f"{project.name}-{project.version}-{project.release}-{self.architecture}.zip"

    def generate_package(self, project: Project) -> list[str]:
        target_dir = self.output_dir(project.repo)
        name_and_version = f"{project.name}-{project.version}"
        staging = f"/windows/build/{name_and_version}"
        return [
            f"mkdir -p $(tempdir){staging}",
            f"gunzip -c {name_and_version}.tar.gz | '{self.tar}' "
            f"-C '$(tempdir){staging}' --strip-components 1 -xf -",
            *self.signer.commands(project, self.mktemp, staging),
            f"(cd $(tempdir){staging}; {self.zip} -r ../{self.package_name(project)} .)",
            f"mkdir -p output/{target_dir}",
            f"cp $(tempdir)/windows/build/{self.package_name(project)} ./output/{target_dir}",
        ]
