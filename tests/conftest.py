"""Shared test fixtures for packforge."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from packforge.config import ForgeConfig
from packforge.core.errors import ConnectivityError, UpstreamFetchError
from packforge.core.project import Project
from packforge.core.signer import Signer
from packforge.platforms import platform_class_for
from packforge.platforms.base import Platform


# ---------------------------------------------------------------------------
# Fakes for the network and subprocess boundaries
# ---------------------------------------------------------------------------


class FakeProbeRunner:
    """Probe runner that answers with a fixed temp dir or fails.

    ``failures`` is how many calls raise before one succeeds; -1 means
    every call fails.
    """

    def __init__(self, output: str = "/tmp/xyz", failures: int = 0) -> None:
        self.output = output
        self.failures = failures
        self.calls: list[tuple[str | None, str, int]] = []

    def run(self, host: str | None, command: str, *, timeout: int) -> str:
        self.calls.append((host, command, timeout))
        if self.failures < 0 or len(self.calls) <= self.failures:
            raise ConnectivityError(f"cannot reach {host}")
        return self.output


class FakeUpstreamLoader:
    """Stands in for UpstreamLoader; returns canned settings maps."""

    def __init__(
        self,
        upstream: dict[str, Any] | None = None,
        snapshot: dict[str, Any] | None = None,
        fail: bool = False,
    ) -> None:
        self.upstream = upstream or {}
        self.snapshot = snapshot or {}
        self.fail = fail
        self.calls: list[tuple[Any, ...]] = []

    def project_settings(self, name: str, git_url: str, ref: str) -> dict[str, Any]:
        self.calls.append(("project", name, git_url, ref))
        if self.fail:
            raise UpstreamFetchError(f"cannot clone {git_url}")
        return dict(self.upstream)

    def snapshot_settings(self, uri: str, checksum_uri: str | None = None) -> dict[str, Any]:
        self.calls.append(("snapshot", uri, checksum_uri))
        return dict(self.snapshot)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def forge_config() -> ForgeConfig:
    """Configuration with signing off, isolated from the environment."""
    return ForgeConfig(_env_file=None, force_signing=False, no_notarize=False, ssh_key=None)


@pytest.fixture
def signing_config() -> ForgeConfig:
    """Configuration with force-signing (and notarization) on."""
    return ForgeConfig(_env_file=None, force_signing=True, no_notarize=False, ssh_key=None)


@pytest.fixture
def probe() -> FakeProbeRunner:
    return FakeProbeRunner()


@pytest.fixture
def make_platform(probe: FakeProbeRunner) -> Callable[..., Platform]:
    """Factory: ``make_platform(name, config)`` with a fake-probe signer."""

    def _make(name: str, config: ForgeConfig, runner: FakeProbeRunner | None = None) -> Platform:
        signer = Signer(config, runner or probe, retry_delay=0)
        return platform_class_for(name)(name, config=config, signer=signer)

    return _make


@pytest.fixture
def make_project(make_platform: Callable[..., Platform], forge_config: ForgeConfig) -> Callable[..., Project]:
    """Factory: a bare project named ``test-fixture`` at version 0.0.0."""

    def _make(
        platform_name: str = "osx-15-arm64",
        config: ForgeConfig | None = None,
        **attrs: Any,
    ) -> Project:
        config = config or forge_config
        project = Project(
            "test-fixture",
            make_platform(platform_name, config),
            config=config,
            upstream_loader=FakeUpstreamLoader(),
        )
        project.version = "0.0.0"
        for key, value in attrs.items():
            setattr(project, key, value)
        return project

    return _make


@pytest.fixture
def configdir(tmp_path: Path) -> Path:
    """An empty ``configs/`` tree with projects/, components/, platforms/."""
    root = tmp_path / "configs"
    for sub in ("projects", "components", "platforms"):
        (root / sub).mkdir(parents=True)
    return root


@pytest.fixture
def write_description(configdir: Path) -> Callable[[str, str, str], Path]:
    """Write ``configs/<kind>/<name>.py`` from a dedented source string."""

    def _write(kind: str, name: str, source: str) -> Path:
        path = configdir / kind / f"{name}.py"
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def failing_probe() -> FakeProbeRunner:
    """A probe runner whose every attempt fails."""
    return FakeProbeRunner(failures=-1)


@pytest.fixture
def probe_factory() -> Callable[..., FakeProbeRunner]:
    return FakeProbeRunner


@pytest.fixture
def upstream_factory() -> Callable[..., FakeUpstreamLoader]:
    return FakeUpstreamLoader
