"""Packaging stages: registry mapping stage_id to stage class.

Usage::

    from packforge.stages import MACOS_STAGE_ORDER, get_stage

    stages = [get_stage(sid) for sid in MACOS_STAGE_ORDER]
    plan = PackagingPipeline(stages).plan(context)
"""

from __future__ import annotations

from packforge.stages.base import BaseStage
from packforge.stages.macos import (
    BinarySigningSweepStage,
    BomRelocationStage,
    DeliveryStage,
    DiskImageSigningStage,
    DiskImageStage,
    ExtraFileSigningStage,
    InstallerBuildStage,
    InstallerFinalizeStage,
    ManifestStagingStage,
    NotarizationStage,
    PackageBuildStage,
    UnpackStage,
    WorkspaceSetupStage,
)

# ---------------------------------------------------------------------------
# Stage registry: stage_id -> stage class
# ---------------------------------------------------------------------------

STAGE_REGISTRY: dict[str, type[BaseStage]] = {
    "workspace_setup": WorkspaceSetupStage,
    "manifest_staging": ManifestStagingStage,
    "unpack": UnpackStage,
    "bom_relocation": BomRelocationStage,
    "extra_file_signing": ExtraFileSigningStage,
    "binary_signing_sweep": BinarySigningSweepStage,
    "package_build": PackageBuildStage,
    "installer_build": InstallerBuildStage,
    "installer_finalize": InstallerFinalizeStage,
    "disk_image": DiskImageStage,
    "disk_image_signing": DiskImageSigningStage,
    "notarization": NotarizationStage,
    "delivery": DeliveryStage,
}

# Execution order of the macOS pipeline.
MACOS_STAGE_ORDER: list[str] = [
    "workspace_setup",
    "manifest_staging",
    "unpack",
    "bom_relocation",
    "extra_file_signing",
    "binary_signing_sweep",
    "package_build",
    "installer_build",
    "installer_finalize",
    "disk_image",
    "disk_image_signing",
    "notarization",
    "delivery",
]


def get_stage(stage_id: str) -> BaseStage:
    """Instantiate and return a stage by its ``stage_id``.

    Raises ``KeyError`` if the stage_id is not registered.
    """
    try:
        cls = STAGE_REGISTRY[stage_id]
    except KeyError:
        raise KeyError(
            f"Unknown stage_id {stage_id!r}. "
            f"Registered stages: {sorted(STAGE_REGISTRY.keys())}"
        ) from None
    return cls()


def macos_stages() -> list[BaseStage]:
    return [get_stage(sid) for sid in MACOS_STAGE_ORDER]


__all__ = [
    "BaseStage",
    "STAGE_REGISTRY",
    "MACOS_STAGE_ORDER",
    "get_stage",
    "macos_stages",
    "WorkspaceSetupStage",
    "ManifestStagingStage",
    "UnpackStage",
    "BomRelocationStage",
    "ExtraFileSigningStage",
    "BinarySigningSweepStage",
    "PackageBuildStage",
    "InstallerBuildStage",
    "InstallerFinalizeStage",
    "DiskImageStage",
    "DiskImageSigningStage",
    "NotarizationStage",
    "DeliveryStage",
]
