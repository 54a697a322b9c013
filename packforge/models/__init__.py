"""packforge data models: Pydantic v2."""

from packforge.models.component import Component, Directory, PackageRelation
from packforge.models.plan import PipelinePlan, StageCondition, StagePlan
from packforge.models.signing import (
    FILE_PLACEHOLDER,
    SigningConfig,
    SigningRequest,
)

__all__ = [
    # components
    "Component",
    "Directory",
    "PackageRelation",
    # plans
    "StageCondition",
    "StagePlan",
    "PipelinePlan",
    # signing
    "FILE_PLACEHOLDER",
    "SigningConfig",
    "SigningRequest",
]
