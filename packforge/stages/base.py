"""Abstract base stage with an enforced planning lifecycle.

Every concrete stage inherits from BaseStage and implements only
``commands()``. The ``plan_stage()`` wrapper is **not overridable**; it
enforces the canonical ordering:

    enabled? -> commands -> StagePlan

so a disabled stage never runs its command builder and never touches the
network (the signing stages probe the signing host while building).
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, ClassVar, final

from packforge.models.plan import StageCondition, StagePlan

if TYPE_CHECKING:
    from packforge.core.pipeline import PackagingContext

logger = logging.getLogger(__name__)


class BaseStage(abc.ABC):
    """Abstract base for all packaging stages.

    Subclasses **must** implement:
        * ``stage_id``: unique identifier (e.g. ``"disk_image"``).
        * ``display_name``: human-readable name shown in plan output.
        * ``commands(context)``: the stage's command builder.

    Subclasses **may** override:
        * ``condition``: when the stage contributes commands.

    Subclasses **must not** override ``plan_stage()``.
    """

    condition: ClassVar[StageCondition] = StageCondition.ALWAYS

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @property
    @abc.abstractmethod
    def stage_id(self) -> str:
        ...

    @property
    @abc.abstractmethod
    def display_name(self) -> str:
        ...

    @abc.abstractmethod
    def commands(self, context: PackagingContext) -> list[str]:
        """Return this stage's commands, in order.

        Parameters
        ----------
        context:
            Project, platform, configuration and signer for this run.
        """
        ...

    # ------------------------------------------------------------------
    # Lifecycle (not overridable)
    # ------------------------------------------------------------------

    @final
    def enabled(self, context: PackagingContext) -> bool:
        """Evaluate ``condition`` against the run's project and toggles."""
        if self.condition is StageCondition.ALWAYS:
            return True
        if self.condition is StageCondition.NO_BILL_OF_MATERIALS:
            return context.project.bill_of_materials is None
        if self.condition is StageCondition.FORCE_SIGNING:
            return context.config.force_signing
        if self.condition is StageCondition.NOTARIZATION:
            return context.config.notarization_enabled
        raise ValueError(f"Unhandled stage condition {self.condition!r}")

    @final
    def plan_stage(self, context: PackagingContext) -> StagePlan:
        """Build this stage's StagePlan.  **Do not override.**"""
        if not self.enabled(context):
            logger.debug(
                "%s [%s] skipped (%s)",
                self.display_name, self.stage_id, self.condition.value,
            )
            return StagePlan(
                stage_id=self.stage_id,
                display_name=self.display_name,
                enabled=False,
            )

        commands = [cmd for cmd in self.commands(context) if cmd]
        logger.info(
            "%s [%s] planned %d command(s)",
            self.display_name, self.stage_id, len(commands),
        )
        return StagePlan(
            stage_id=self.stage_id,
            display_name=self.display_name,
            commands=commands,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stage_id={self.stage_id!r}>"
