"""Tests for runtime config: env-driven toggles."""

from __future__ import annotations

from pathlib import Path

import pytest

from packforge.config import ForgeConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        "PACKFORGE_FORCE_SIGNING",
        "PACKFORGE_NO_NOTARIZE",
        "PACKFORGE_SSH_KEY",
        "PACKFORGE_LOG_LEVEL",
        "PACKFORGE_CONFIGDIR",
    ):
        monkeypatch.delenv(var, raising=False)


class TestForgeConfig:
    def test_defaults(self):
        config = ForgeConfig(_env_file=None)
        assert config.log_level == "INFO"
        assert config.force_signing is False
        assert config.no_notarize is False
        assert config.ssh_key is None
        assert config.ssh_port == 22

    def test_default_paths(self):
        config = ForgeConfig(_env_file=None)
        assert config.configdir == Path("configs")
        assert config.output_dir == Path("output")

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("PACKFORGE_FORCE_SIGNING", "true")
        monkeypatch.setenv("PACKFORGE_SSH_KEY", "/keys/signer")
        config = ForgeConfig(_env_file=None)
        assert config.force_signing is True
        assert config.ssh_key == Path("/keys/signer")

    def test_env_file(self, tmp_path: Path):
        env = tmp_path / ".env"
        env.write_text("PACKFORGE_NO_NOTARIZE=1\nPACKFORGE_LOG_LEVEL=DEBUG\n")
        config = ForgeConfig(_env_file=env)
        assert config.no_notarize is True
        assert config.log_level == "DEBUG"


class TestNotarizationToggle:
    @pytest.mark.parametrize(
        ("force", "no_notarize", "expected"),
        [
            (False, False, False),
            (False, True, False),
            (True, False, True),
            (True, True, False),
        ],
    )
    def test_notarization_enabled(self, force, no_notarize, expected):
        config = ForgeConfig(_env_file=None, force_signing=force, no_notarize=no_notarize)
        assert config.notarization_enabled is expected
