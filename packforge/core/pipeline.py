"""Packaging pipeline: an ordered list of stages folded into one plan.

Planning is pure apart from the signing-host probe the signing stages
perform. Each stage contributes its command sub-sequence; the pipeline
concatenates them in stage order into a ``PipelinePlan``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from packforge.config import ForgeConfig
from packforge.models.plan import PipelinePlan
from packforge.stages.macos import BUILD_DIR

if TYPE_CHECKING:
    from packforge.core.project import Project
    from packforge.core.signer import Signer
    from packforge.platforms.base import Platform
    from packforge.stages.base import BaseStage

logger = logging.getLogger(__name__)


class PackagingContext:
    """Everything a stage needs to build its commands.

    Parameters
    ----------
    project:
        The fully loaded project being packaged.
    platform:
        The platform variant doing the packaging.
    config:
        Global toggles; defaults to the platform's configuration.
    signer:
        Extra-file signer; defaults to the platform's signer.
    """

    def __init__(
        self,
        project: Project,
        platform: Platform,
        config: ForgeConfig | None = None,
        signer: Signer | None = None,
    ) -> None:
        self.project = project
        self.platform = platform
        self.config = config or platform.config
        self.signer = signer or platform.signer

    # ------------------------------------------------------------------
    # Derived names
    # ------------------------------------------------------------------

    @property
    def name_and_version(self) -> str:
        return f"{self.project.name}-{self.project.version}"

    @property
    def root_dir(self) -> str:
        """Staging root relative to the build dir."""
        return f"root/{self.name_and_version}"

    @property
    def installer_pkg(self) -> str:
        return f"{self.name_and_version}-{self.project.release}-installer.pkg"

    @property
    def package_name(self) -> str:
        return self.platform.package_name(self.project)

    @property
    def dmg_path(self) -> str:
        return f"{BUILD_DIR}/dmg/{self.package_name}"

    @property
    def target_dir(self) -> str:
        return self.platform.output_dir(self.project.repo)


class PackagingPipeline:
    """Runs stages in order and collects their StagePlans."""

    def __init__(self, stages: Sequence[BaseStage]) -> None:
        self.stages = list(stages)

    @property
    def stage_ids(self) -> list[str]:
        return [stage.stage_id for stage in self.stages]

    def plan(self, context: PackagingContext) -> PipelinePlan:
        logger.info(
            "Planning %s for %s (%d stages)",
            context.project.name, context.platform.name, len(self.stages),
        )
        plan = PipelinePlan(
            project_name=context.project.name,
            platform_name=context.platform.name,
            stages=[stage.plan_stage(context) for stage in self.stages],
        )
        logger.info("Plan %s has %d command(s)", plan.plan_hash[:19], len(plan))
        return plan
