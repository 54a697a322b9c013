"""End-to-end integration tests: description tree to packaging plan.

These tests exercise description loading, settings inheritance (live git and
published snapshots), the component graph, the signer, and the macOS stage
pipeline working together through the public loading functions.
"""

from __future__ import annotations

import json
import shutil
import subprocess
import textwrap
from pathlib import Path

import pytest

from packforge.config import ForgeConfig
from packforge.core.errors import VerificationError
from packforge.core.executor import ShellExecutor
from packforge.dsl import load_description

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _write(root: Path, relative: str, source: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source), encoding="utf-8")


def _git(repo: Path, *args: str) -> None:
    subprocess.run(
        ["git", "-C", str(repo), "-c", "user.name=packforge", "-c", "user.email=ci@example.com",
         "-c", "commit.gpgsign=false", *args],
        check=True,
        capture_output=True,
    )


@pytest.fixture
def upstream_repo(tmp_path: Path) -> Path:
    """A tagged git checkout holding a ``runtime`` project."""
    repo = tmp_path / "runtime.git"
    _write(repo, "configs/projects/runtime.py", """
        def project(proj):
            proj.version("7.0.0")
            proj.setting("prefix", "/opt/runtime")
            proj.setting("openssl_version", "3.0")
            proj.setting("platform_family", proj.get_platform().family)
    """)
    _write(repo, "configs/platforms/osx-15-arm64.py", """
        def platform(plat):
            plat.setting("platform_note", "from-upstream")
    """)
    _git(repo, "init", "-q")
    _git(repo, "add", ".")
    _git(repo, "commit", "-qm", "runtime project")
    _git(repo, "tag", "v7")
    return repo


@pytest.fixture
def agent_configs(tmp_path: Path) -> Path:
    """A downstream ``agent`` project with two components and signing."""
    configs = tmp_path / "agent" / "configs"
    _write(configs, "components/ruby.py", """
        def component(pkg, settings, platform):
            pkg.version("3.2.2")
            pkg.build_requires("openssl")
            pkg.build_requires("autoconf")
            pkg.option("prefix", settings["prefix"])
    """)
    _write(configs, "components/openssl.py", """
        def component(pkg, settings, platform):
            pkg.version(settings["openssl_version"])
            pkg.ref("openssl-" + settings["openssl_version"])
    """)
    return configs


@pytest.fixture
def fake_probe(monkeypatch, probe_factory):
    """Route the signer's connectivity probe to an in-memory runner."""
    runner = probe_factory(output="/var/tmp/signing.1")
    monkeypatch.setattr("packforge.core.signer.SubprocessProbeRunner", lambda config: runner)
    return runner


@needs_git
class TestLiveInheritance:
    """A project inherits a live upstream's settings, then builds a plan."""

    @pytest.fixture
    def project(self, agent_configs: Path, upstream_repo: Path, fake_probe):
        _write(agent_configs, "projects/agent.py", f"""
            def project(proj):
                proj.setting("prefix", "/opt/local-default")
                proj.inherit_settings("runtime", {str(upstream_repo)!r}, "v7", required=True)
                proj.setting("openssl_version", "3.1")
                proj.version("8.1.0")
                proj.identifier("com.example")
                proj.vendor("Example Inc. <release@example.com>")
                proj.signing_hostname("signer.example.com")
                proj.signing_command("codesign --sign $$CERT %{{file}}")
                proj.extra_file_to_sign("/opt/runtime/bin/agent")
                proj.component("ruby")
                proj.component("openssl")
        """)
        config = ForgeConfig(_env_file=None, force_signing=True, no_notarize=True, ssh_key=None)
        return load_description("agent", "osx-15-arm64", agent_configs, config=config)

    def test_inherited_settings_are_positional(self, project):
        assert project.settings["prefix"] == "/opt/runtime"
        assert project.settings["openssl_version"] == "3.1"
        assert project.settings["platform_family"] == "macos"
        assert project.settings["platform_note"] == "from-upstream"

    def test_components_see_merged_settings(self, project):
        assert project.components[0].options["prefix"] == "/opt/runtime"
        assert project.generate_dependencies_info()["openssl"] == {
            "version": "3.1",
            "ref": "openssl-3.1",
        }
        assert [c.name for c in project.filter_component("ruby")] == ["ruby", "openssl"]
        assert project.graph.external_requirements("ruby") == ["autoconf"]

    def test_signed_plan(self, project, fake_probe):
        plan = project.platform.plan(project)
        assert fake_probe.calls[0][0] == "signer.example.com"

        extra = plan.stage("extra_file_signing").commands
        assert len(extra) == 5
        assert extra[1].endswith(
            "\"echo 'codesign --sign $$CERT /var/tmp/signing.1/agent' "
            ">> /var/tmp/signing.1/sign_extra_file\""
        )

        assert plan.stage("binary_signing_sweep").enabled
        assert plan.stage("disk_image_signing").enabled
        assert plan.stage("notarization").enabled is False
        assert plan.commands[-1] == (
            "cp $(tempdir)/macos/build/dmg/agent-8.1.0-1.osx.15.arm64.dmg ./output/osx/15/arm64"
        )


class TestSnapshotInheritance:
    """Publish a snapshot from one project and inherit it in another."""

    @pytest.fixture
    def published(self, tmp_path: Path, agent_configs: Path) -> Path:
        _write(agent_configs, "projects/runtime.py", """
            def project(proj):
                proj.version("7.0.0")
                proj.setting("prefix", "/opt/runtime")
                proj.setting("openssl_version", "3.0")
                proj.publish_yaml_settings()
        """)
        config = ForgeConfig(_env_file=None, force_signing=False, ssh_key=None)
        runtime = load_description("runtime", "el-9-x86_64", agent_configs, config=config)
        out = tmp_path / "published"
        out.mkdir()
        yaml_path, _ = runtime.publish_yaml_settings(runtime.platform, out)
        return yaml_path

    def _agent(self, agent_configs: Path, published: Path):
        checksum_uri = published.as_uri() + ".sha1"
        _write(agent_configs, "projects/agent.py", f"""
            def project(proj):
                proj.inherit_yaml_settings({published.as_uri()!r}, {checksum_uri!r})
                proj.version("8.1.0")
                proj.component("ruby")
                proj.component("openssl")
                proj.generate_archives(True)
        """)
        config = ForgeConfig(_env_file=None, force_signing=False, ssh_key=None)
        return load_description("agent", "el-9-x86_64", agent_configs, config=config)

    def test_verified_snapshot_is_merged(self, agent_configs, published):
        project = self._agent(agent_configs, published)
        assert project.settings["prefix"] == "/opt/runtime"
        assert project.components[1].version == "3.0"

    def test_tampered_snapshot_is_rejected(self, agent_configs, published):
        published.write_text(published.read_text() + "injected: true\n")
        with pytest.raises(VerificationError):
            self._agent(agent_configs, published)

    def test_plan_has_package_then_archive(self, agent_configs, published):
        commands = self._agent(agent_configs, published).generate_package()
        rpmbuild = next(i for i, c in enumerate(commands) if "rpmbuild -bb" in c)
        gzip = next(i for i, c in enumerate(commands) if c.startswith("gzip -9c"))
        assert rpmbuild < gzip


class TestExecuteArchivePlan:
    """Run the compiled-archive plan for real against a built tarball."""

    def test_archive_round_trip(self, tmp_path: Path, agent_configs: Path):
        _write(agent_configs, "projects/tiny.py", """
            def project(proj):
                proj.version("1.0")
                proj.generate_packages(False)
                proj.generate_archives(True)
        """)
        config = ForgeConfig(_env_file=None, force_signing=False, ssh_key=None)
        project = load_description("tiny", "el-9-x86_64", agent_configs, config=config)

        workdir = tmp_path / "work"
        tree = workdir / "tiny-1.0" / "opt" / "tiny"
        tree.mkdir(parents=True)
        (tree / "README").write_text("tiny\n")
        subprocess.run(["tar", "czf", "tiny-1.0.tar.gz", "tiny-1.0"], cwd=workdir, check=True)

        ShellExecutor(workdir).run(project.generate_package())

        assert (workdir / "output" / "tiny-1.0.el-9-x86_64.tar.gz").is_file()
        metadata = json.loads((workdir / "output" / "tiny-1.0.el-9-x86_64.json").read_text())
        assert metadata["version"] == "1.0"
