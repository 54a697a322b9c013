"""Tests for ssh/rsync command builders and the probe retry loop."""

from __future__ import annotations

import subprocess

import pytest

from packforge.config import ForgeConfig
from packforge.core.errors import ConnectivityError
from packforge.core.remote import (
    ProbeRunner,
    SubprocessProbeRunner,
    probe_with_retries,
    rsync_command,
    ssh_command,
)


class TestCommandBuilders:
    def test_ssh_without_key_keeps_double_space(self, forge_config):
        assert ssh_command(forge_config) == (
            "/usr/bin/ssh -p 22  -o UserKnownHostsFile=/dev/null -o StrictHostKeyChecking=no"
        )

    def test_local_rsync_has_no_transport(self):
        cmd = rsync_command("a", "b")
        assert cmd.startswith("rsync --verbose")
        assert "-e" not in cmd.split()

    def test_rsync_extended_attributes(self, forge_config):
        cmd = rsync_command("a", "host:/tmp", config=forge_config, extended_attributes=True)
        assert cmd.endswith("--no-group --extended-attributes a host:/tmp")


class TestProbeWithRetries:
    def test_returns_first_success(self, probe):
        assert probe_with_retries(probe, "h", "mktemp", attempts=3, timeout=5, delay=0) == "/tmp/xyz"
        assert len(probe.calls) == 1

    def test_reraises_last_failure(self, failing_probe):
        with pytest.raises(ConnectivityError):
            probe_with_retries(failing_probe, "h", "mktemp", attempts=3, timeout=5, delay=0)
        assert len(failing_probe.calls) == 3

    def test_at_least_one_attempt(self, failing_probe):
        with pytest.raises(ConnectivityError):
            probe_with_retries(failing_probe, "h", "mktemp", attempts=0, timeout=5, delay=0)
        assert len(failing_probe.calls) == 1

    def test_fake_satisfies_protocol(self, probe):
        assert isinstance(probe, ProbeRunner)


class TestSubprocessProbeRunner:
    def test_local_probe_returns_stripped_stdout(self, forge_config, monkeypatch):
        def fake_run(argv, **kwargs):
            assert argv == ["/bin/sh", "-c", "mktemp -d 2>/dev/null"]
            return subprocess.CompletedProcess(argv, 0, stdout="/tmp/abc\n", stderr="")

        monkeypatch.setattr("packforge.core.remote.subprocess.run", fake_run)
        runner = SubprocessProbeRunner(forge_config)
        assert runner.run(None, "mktemp -d 2>/dev/null", timeout=5) == "/tmp/abc"

    def test_remote_probe_goes_over_ssh(self, forge_config, monkeypatch):
        seen = {}

        def fake_run(argv, **kwargs):
            seen["argv"] = argv
            return subprocess.CompletedProcess(argv, 0, stdout="/tmp/r\n", stderr="")

        monkeypatch.setattr("packforge.core.remote.subprocess.run", fake_run)
        SubprocessProbeRunner(forge_config).run("test@abc", "mktemp", timeout=5)
        assert seen["argv"][0] == "/usr/bin/ssh"
        assert seen["argv"][-2:] == ["test@abc", "mktemp"]

    def test_nonzero_exit_is_connectivity_error(self, forge_config, monkeypatch):
        monkeypatch.setattr(
            "packforge.core.remote.subprocess.run",
            lambda argv, **kw: subprocess.CompletedProcess(argv, 255, stdout="", stderr="refused"),
        )
        with pytest.raises(ConnectivityError, match="refused"):
            SubprocessProbeRunner(forge_config).run("test@abc", "mktemp", timeout=5)

    def test_timeout_is_connectivity_error(self, forge_config, monkeypatch):
        def fake_run(argv, **kwargs):
            raise subprocess.TimeoutExpired(argv, kwargs["timeout"])

        monkeypatch.setattr("packforge.core.remote.subprocess.run", fake_run)
        with pytest.raises(ConnectivityError):
            SubprocessProbeRunner(forge_config).run("test@abc", "mktemp", timeout=5)

    def test_uses_configured_port(self, monkeypatch):
        config = ForgeConfig(_env_file=None, ssh_port=2200, ssh_key=None)
        seen = {}

        def fake_run(argv, **kwargs):
            seen["argv"] = argv
            return subprocess.CompletedProcess(argv, 0, stdout="x", stderr="")

        monkeypatch.setattr("packforge.core.remote.subprocess.run", fake_run)
        SubprocessProbeRunner(config).run("h", "mktemp", timeout=1)
        assert seen["argv"][1:3] == ["-p", "2200"]
