"""Component and package relation models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Component(BaseModel):
    """A named, independently-versioned unit of source within a project.

    ``build_requires`` names are resolved only against components owned by
    the same project; anything else is an external/system package.
    Only ``version`` and ``options`` change after load (updated by the
    component's own build).
    """

    model_config = ConfigDict(validate_assignment=True)

    name: str
    version: str | None = None
    build_requires: list[str] = Field(default_factory=list)
    options: dict[str, Any] = Field(default_factory=dict)


class PackageRelation(BaseModel):
    """A requires/replaces/provides/conflicts entry for packaging metadata."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None


class Directory(BaseModel):
    """A directory the project's packages own, with optional ownership."""

    model_config = ConfigDict(frozen=True)

    path: str
    mode: str | None = None
    owner: str | None = None
    group: str | None = None
