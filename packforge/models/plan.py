"""Command plan models: the output of the packaging pipeline."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, computed_field

from packforge.core.hasher import content_address


class StageCondition(str, Enum):
    """When a packaging stage contributes commands."""

    ALWAYS = "always"
    NO_BILL_OF_MATERIALS = "no_bill_of_materials"
    FORCE_SIGNING = "force_signing"
    NOTARIZATION = "notarization"  # force signing and notarization not skipped


class StagePlan(BaseModel):
    """Commands one stage contributed to a plan.

    A disabled stage and an enabled stage with no commands both contribute
    nothing; ``enabled`` records which of the two happened.
    """

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    enabled: bool = True
    commands: list[str] = []


class PipelinePlan(BaseModel):
    """Ordered command sequence for one packaging invocation.

    Stages are kept in execution order. ``commands`` flattens them and drops
    empty entries; nothing is reordered or deduplicated.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str
    platform_name: str
    stages: list[StagePlan] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def commands(self) -> list[str]:
        return [cmd for stage in self.stages for cmd in stage.commands if cmd]

    @property
    def plan_hash(self) -> str:
        """Content address of the flattened command list."""
        return content_address(self.commands)

    def stage(self, stage_id: str) -> StagePlan:
        """Return the StagePlan for *stage_id*."""
        for stage in self.stages:
            if stage.stage_id == stage_id:
                return stage
        raise KeyError(f"No stage {stage_id!r} in plan")

    def __len__(self) -> int:
        return len(self.commands)
