"""macOS packaging stages.

Turns the built ``<name>-<version>.tar.gz`` into a ``.dmg`` holding a
product installer. Signing, binary sweeps and notarization only appear
when force-signing is on; they expect the build host to provide
``SIGNING_KEYCHAIN``, ``SIGNING_KEYCHAIN_PW``, ``APPLICATION_SIGNING_CERT``,
``INSTALLER_SIGNING_CERT`` and ``NOTARY_PROFILE`` in its environment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from packforge.models.plan import StageCondition
from packforge.stages.base import BaseStage

if TYPE_CHECKING:
    from packforge.core.pipeline import PackagingContext

UNLOCK_KEYCHAIN = "security unlock-keychain -p $$SIGNING_KEYCHAIN_PW $$SIGNING_KEYCHAIN"

BUILD_DIR = "$(tempdir)/macos/build"


def binary_sweep_table(context: PackagingContext) -> list[tuple[str, str]]:
    """(path under the build dir, find -name pattern) pairs to codesign."""
    root = context.root_dir
    return [
        (f"{root}/opt/puppetlabs/bin/", "*"),
        (f"{root}/opt/puppetlabs/puppet/bin/", "*"),
        (f"{root}/opt/puppetlabs/puppet/lib/ruby/vendor_gems/bin", "*"),
        (f"{root}/opt/puppetlabs/puppet/lib/", "*.dylib"),
        (f"{root}/opt/puppetlabs/puppet/lib", "*.bundle"),
        ("plugins", "puppet-agent-installer-plugin"),
    ]


# ---------------------------------------------------------------------------
# Always-on stages
# ---------------------------------------------------------------------------


class WorkspaceSetupStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "workspace_setup"

    @property
    def display_name(self) -> str:
        return "Workspace Setup"

    def commands(self, context: PackagingContext) -> list[str]:
        return [
            f"bash -c 'mkdir -p {BUILD_DIR}/{{dmg,pkg,scripts,resources,root,payload,plugins}}'",
            f"mkdir -p {BUILD_DIR}/{context.root_dir}",
            f"mkdir -p {BUILD_DIR}/pkg",
        ]


class ManifestStagingStage(BaseStage):
    """Distribution xml, uninstaller, scripts and productbuild resources."""

    @property
    def stage_id(self) -> str:
        return "manifest_staging"

    @property
    def display_name(self) -> str:
        return "Manifest Staging"

    def commands(self, context: PackagingContext) -> list[str]:
        name = context.project.name
        return [
            f"cp {name}-installer.xml {BUILD_DIR}/",
            f"cp {name}-uninstaller.tool {BUILD_DIR}/pkg/",
            f"cp scripts/* {BUILD_DIR}/scripts/",
            "if [ -d resources/macos/productbuild ] ; then "
            f"cp -r resources/macos/productbuild/* {BUILD_DIR}/; fi",
        ]


class UnpackStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "unpack"

    @property
    def display_name(self) -> str:
        return "Unpack"

    def commands(self, context: PackagingContext) -> list[str]:
        tar = context.platform.tar
        return [
            f"gunzip -c {context.name_and_version}.tar.gz | '{tar}' "
            f"-C '{BUILD_DIR}/{context.root_dir}' --strip-components 1 -xf -",
        ]


class BomRelocationStage(BaseStage):
    """Moves the bill-of-materials into a docdir when none was declared."""

    condition: ClassVar[StageCondition] = StageCondition.NO_BILL_OF_MATERIALS

    @property
    def stage_id(self) -> str:
        return "bom_relocation"

    @property
    def display_name(self) -> str:
        return "Bill-of-Materials Relocation"

    def commands(self, context: PackagingContext) -> list[str]:
        root = f"{BUILD_DIR}/{context.root_dir}"
        docdir = f"{root}/usr/local/share/doc/{context.project.name}"
        return [
            f"mkdir -p {docdir}",
            f"mv {root}/bill-of-materials {docdir}/bill-of-materials",
        ]


class PackageBuildStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "package_build"

    @property
    def display_name(self) -> str:
        return "Component Package Build"

    def commands(self, context: PackagingContext) -> list[str]:
        project = context.project
        payload = f"payload/{context.name_and_version}-{project.release}.pkg"
        return [
            f"(cd {BUILD_DIR}/; {context.platform.pkgbuild} --root {context.root_dir} "
            f"--scripts {BUILD_DIR}/scripts "
            f"--identifier {project.identifier}.{project.name} "
            f"--version {project.version} "
            "--preserve-xattr "
            "--install-location / "
            f"{payload})",
        ]


class InstallerBuildStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "installer_build"

    @property
    def display_name(self) -> str:
        return "Product Installer Build"

    def commands(self, context: PackagingContext) -> list[str]:
        project = context.project
        return [
            f"(cd {BUILD_DIR}/; {context.platform.productbuild} "
            f"--distribution {project.name}-installer.xml "
            f"--identifier {project.identifier}.{project.name}-installer "
            "--package-path payload/ "
            f"--resources {BUILD_DIR}/resources "
            f"--plugins {BUILD_DIR}/plugins "
            f"{context.installer_pkg})",
        ]


class InstallerFinalizeStage(BaseStage):
    """Signs the installer into ``pkg/``, or moves it there unsigned."""

    @property
    def stage_id(self) -> str:
        return "installer_finalize"

    @property
    def display_name(self) -> str:
        return "Installer Finalize"

    def commands(self, context: PackagingContext) -> list[str]:
        unsigned = f"{BUILD_DIR}/{context.installer_pkg}"
        if not context.config.force_signing:
            return [f"mv {unsigned} {BUILD_DIR}/pkg/"]
        return [
            UNLOCK_KEYCHAIN,
            "productsign --keychain $$SIGNING_KEYCHAIN "
            f'--sign "$$INSTALLER_SIGNING_CERT" {unsigned} '
            f"{BUILD_DIR}/pkg/{context.installer_pkg}",
            f"rm {unsigned}",
        ]


class DiskImageStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "disk_image"

    @property
    def display_name(self) -> str:
        return "Disk Image"

    def commands(self, context: PackagingContext) -> list[str]:
        return [
            f"(cd {BUILD_DIR}; {context.platform.hdiutil} create "
            f"-volname {context.name_and_version} "
            "-fs JHFS+ "
            "-format UDBZ "
            "-srcfolder pkg "
            f"dmg/{context.package_name})",
        ]


class DeliveryStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "delivery"

    @property
    def display_name(self) -> str:
        return "Delivery"

    def commands(self, context: PackagingContext) -> list[str]:
        return [
            f"mkdir -p output/{context.target_dir}",
            f"cp {context.dmg_path} ./output/{context.target_dir}",
        ]


# ---------------------------------------------------------------------------
# Force-signing stages
# ---------------------------------------------------------------------------


class ExtraFileSigningStage(BaseStage):
    """Signs the project's declared extra files through the Signer."""

    condition: ClassVar[StageCondition] = StageCondition.FORCE_SIGNING

    @property
    def stage_id(self) -> str:
        return "extra_file_signing"

    @property
    def display_name(self) -> str:
        return "Extra File Signing"

    def commands(self, context: PackagingContext) -> list[str]:
        return context.signer.commands(
            context.project,
            context.platform.mktemp,
            f"/macos/build/{context.root_dir}",
        )


class BinarySigningSweepStage(BaseStage):
    """Codesigns every binary, dylib and bundle, then verifies them all."""

    condition: ClassVar[StageCondition] = StageCondition.FORCE_SIGNING

    @property
    def stage_id(self) -> str:
        return "binary_signing_sweep"

    @property
    def display_name(self) -> str:
        return "Binary Signing Sweep"

    def commands(self, context: PackagingContext) -> list[str]:
        table = binary_sweep_table(context)
        sign = [
            f"find {BUILD_DIR}/{path} -name '{pattern}' -type f -exec "
            "codesign --timestamp --options runtime --keychain $$SIGNING_KEYCHAIN "
            '-vfs "$$APPLICATION_SIGNING_CERT" {} \\;'
            for path, pattern in table
        ]
        verify = [
            f"find {BUILD_DIR}/{path} -name '{pattern}' -type f -exec "
            "codesign --verify --strict --verbose=2 {} \\;"
            for path, pattern in table
        ]
        return [UNLOCK_KEYCHAIN, *sign, *verify]


class DiskImageSigningStage(BaseStage):
    condition: ClassVar[StageCondition] = StageCondition.FORCE_SIGNING

    @property
    def stage_id(self) -> str:
        return "disk_image_signing"

    @property
    def display_name(self) -> str:
        return "Disk Image Signing"

    def commands(self, context: PackagingContext) -> list[str]:
        dmg = context.dmg_path
        return [
            UNLOCK_KEYCHAIN,
            f"cd {BUILD_DIR}",
            "codesign --timestamp --keychain $$SIGNING_KEYCHAIN "
            f'--sign "$$APPLICATION_SIGNING_CERT" {dmg}',
            f"codesign --verify --strict --verbose=2 {dmg}",
        ]


class NotarizationStage(BaseStage):
    """Submits the signed dmg to the notary service and staples the ticket."""

    condition: ClassVar[StageCondition] = StageCondition.NOTARIZATION

    @property
    def stage_id(self) -> str:
        return "notarization"

    @property
    def display_name(self) -> str:
        return "Notarization"

    def commands(self, context: PackagingContext) -> list[str]:
        dmg = context.dmg_path
        return [
            UNLOCK_KEYCHAIN,
            f'xcrun notarytool submit {dmg} --keychain-profile "$$NOTARY_PROFILE" --wait',
            f"xcrun stapler staple {dmg}",
            f"spctl --assess --type install --verbose {dmg}",
        ]
