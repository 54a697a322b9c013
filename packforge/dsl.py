"""Description loading: projects, components and platforms as Python files.

Descriptions live under a config directory::

    configs/
        platforms/<platform>.py    def platform(plat): ...
        projects/<project>.py      def project(proj): ...
        components/<component>.py  def component(pkg, settings, platform): ...

Each file is executed with ``runpy`` and its entry function is called once
with a DSL object. Statements take effect in the order they appear; this is
what makes ``inherit_settings`` positional (a ``setting`` before it loses to
the inherited value, one after it wins).

Example project description::

    def project(proj):
        proj.version("1.2.3")
        proj.vendor("Example Inc. <release@example.com>")
        proj.inherit_yaml_settings("file:///srv/agent-1.0.osx-15-arm64.settings.yaml")
        proj.setting("prefix", "/opt/example")
        proj.component("openssl")
"""

from __future__ import annotations

import logging
import re
import runpy
import subprocess
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from packforge.config import ForgeConfig
from packforge.core.errors import ConfigurationError
from packforge.core.project import Project
from packforge.core.settings_store import SettingsStore
from packforge.core.upstream import UpstreamLoader
from packforge.models.component import Component, Directory, PackageRelation
from packforge.platforms import load_platform
from packforge.platforms.base import Platform

logger = logging.getLogger(__name__)

BRANCH_VERSION_RE = re.compile(r"(\d+(?:\.\d+)+)")
# Component names double as file names under components/
COMPONENT_NAME_RE = re.compile(r"^[A-Za-z0-9_+][A-Za-z0-9._+-]*$")


# ---------------------------------------------------------------------------
# File evaluation
# ---------------------------------------------------------------------------


def _entry_point(path: Path, function: str) -> Callable[..., Any]:
    """Execute *path* and return its top-level *function*."""
    if not path.is_file():
        raise ConfigurationError(f"No description file at {path}")
    namespace = runpy.run_path(str(path), run_name=f"packforge.descriptions.{path.stem}")
    entry = namespace.get(function)
    if not callable(entry):
        raise ConfigurationError(f"{path} must define a {function}() function")
    return entry


def _git_output(repo: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", "-C", str(repo), *args], capture_output=True, text=True
    )
    if proc.returncode != 0:
        raise ConfigurationError(f"git {' '.join(args)} failed in {repo}: {proc.stderr.strip()}")
    return proc.stdout.strip()


# ---------------------------------------------------------------------------
# Platform descriptions
# ---------------------------------------------------------------------------


class PlatformDSL:
    """Object handed to ``platform(plat)`` in a platform description."""

    def __init__(self, platform: Platform) -> None:
        self.platform = platform

    def codename(self, name: str) -> None:
        self.platform.codename = name

    def servicedir(self, path: str) -> None:
        self.platform.servicedir = path

    def servicetype(self, kind: str) -> None:
        self.platform.servicetype = kind

    def defaultdir(self, path: str) -> None:
        self.platform.defaultdir = path

    def dist(self, name: str) -> None:
        self.platform.dist = name

    def tar(self, path: str) -> None:
        self.platform.tar = path

    def brew(self, path: str) -> None:
        if not self.platform.is_macos:
            raise ConfigurationError(f"brew is only available on macOS, not {self.platform.name}")
        self.platform.brew = path  # type: ignore[attr-defined]

    def provision_with(self, command: str) -> None:
        self.platform.provisioning.append(command)

    def install_build_dependencies_with(self, command: str) -> None:
        self.platform.build_dependency_installer = command

    def setting(self, name: str, value: Any) -> None:
        self.platform.settings[name] = value


def load_platform_description(
    name: str,
    platforms_dir: Path | str,
    *,
    config: ForgeConfig | None = None,
) -> Platform:
    """Built-in variant for *name*, customized by ``<platforms_dir>/<name>.py``.

    A missing description file is fine; the variant's defaults stand.
    """
    platform = load_platform(name, config)
    path = Path(platforms_dir) / f"{name}.py"
    if path.is_file():
        _entry_point(path, "platform")(PlatformDSL(platform))
    else:
        logger.debug("No platform description for %s, using defaults", name)
    return platform


# ---------------------------------------------------------------------------
# Component descriptions
# ---------------------------------------------------------------------------


class ComponentDSL:
    """Object handed to ``component(pkg, settings, platform)``."""

    def __init__(self, name: str) -> None:
        self.component = Component(name=name)

    def version(self, ver: str) -> None:
        self.component.version = ver

    def build_requires(self, name: str) -> None:
        self.component.build_requires.append(name)

    def ref(self, ref: str) -> None:
        self.component.options["ref"] = ref

    def url(self, url: str) -> None:
        self.component.options["url"] = url

    def option(self, key: str, value: Any) -> None:
        self.component.options[key] = value

    def __getattr__(self, attr: str) -> Any:
        if attr.startswith("get_"):
            component = self.__dict__["component"]
            return lambda: getattr(component, attr[4:])
        raise AttributeError(attr)


def load_component(
    name: str,
    components_dir: Path | str,
    settings: SettingsStore,
    platform: Platform,
) -> Component:
    """Evaluate ``<components_dir>/<name>.py`` and return its Component."""
    if not COMPONENT_NAME_RE.match(name):
        raise ConfigurationError(f"Invalid component name {name!r}")
    pkg = ComponentDSL(name)
    _entry_point(Path(components_dir) / f"{name}.py", "component")(pkg, settings, platform)
    return pkg.component


# ---------------------------------------------------------------------------
# Project descriptions
# ---------------------------------------------------------------------------


class ProjectDSL:
    """Object handed to ``project(proj)`` in a project description.

    Parameters
    ----------
    name:
        Project name.
    configdir:
        Config directory holding ``components/``; its parent is the git
        checkout used by the ``*_from_git`` helpers.
    platform:
        Platform being described for.
    include_components:
        When non-empty, only these components are loaded.
    """

    def __init__(
        self,
        name: str,
        configdir: Path | str,
        platform: Platform,
        *,
        config: ForgeConfig | None = None,
        include_components: Iterable[str] = (),
        upstream_loader: UpstreamLoader | None = None,
    ) -> None:
        self.configdir = Path(configdir)
        self.project = Project(
            name, platform, config=config, upstream_loader=upstream_loader
        )
        self._include_components = set(include_components)

    def __getattr__(self, attr: str) -> Any:
        project = self.__dict__.get("project")
        if project is None:
            raise AttributeError(attr)
        # proj.get_version(), proj.get_settings(), ...
        if attr.startswith("get_"):
            return lambda: getattr(project, attr[4:])
        # proj.prefix reads an existing setting, inherited or local
        if attr in project.settings:
            return project.settings[attr]
        raise AttributeError(attr)

    @property
    def settings(self) -> SettingsStore:
        return self.project.settings

    @property
    def _repo_dir(self) -> Path:
        return self.configdir.resolve().parent

    # ------------------------------------------------------------------
    # Identity & metadata
    # ------------------------------------------------------------------

    def setting(self, name: str, value: Any) -> None:
        self.project.settings[name] = value

    def version(self, ver: str) -> None:
        self.project.version = ver

    def release(self, rel: str | int) -> None:
        self.project.release = str(rel)

    def description(self, text: str) -> None:
        self.project.description = text

    def homepage(self, url: str) -> None:
        self.project.homepage = url

    def license(self, lic: str) -> None:
        self.project.license = lic

    def vendor(self, vend: str) -> None:
        self.project.vendor = vend

    def identifier(self, ident: str) -> None:
        """Reverse-domain identifier, used by macOS packaging."""
        self.project.identifier = ident

    def target_repo(self, repo: str) -> None:
        self.project.repo = repo

    def noarch(self) -> None:
        self.project.noarch = True

    def environment(self, name: str, value: str) -> None:
        self.project.environment[name] = value

    def directory(
        self,
        path: str,
        mode: str | None = None,
        owner: str | None = None,
        group: str | None = None,
    ) -> None:
        self.project.directories.append(
            Directory(path=path, mode=mode, owner=owner, group=group)
        )

    def write_version_file(self, target: str) -> None:
        self.project.version_file = target

    def bill_of_materials(self, target: str) -> None:
        self.project.bill_of_materials = target

    # ------------------------------------------------------------------
    # Package relations
    # ------------------------------------------------------------------

    def requires(self, name: str, version: str | None = None) -> None:
        self.project.requires.append(PackageRelation(name=name, version=version))

    def replaces(self, name: str, version: str | None = None) -> None:
        self.project.replaces.append(PackageRelation(name=name, version=version))

    def provides(self, name: str, version: str | None = None) -> None:
        self.project.provides.append(PackageRelation(name=name, version=version))

    def conflicts(self, name: str, version: str | None = None) -> None:
        self.project.conflicts.append(PackageRelation(name=name, version=version))

    # ------------------------------------------------------------------
    # Output toggles
    # ------------------------------------------------------------------

    def generate_packages(self, enabled: bool) -> None:
        self.project.generate_packages = enabled

    def generate_archives(self, enabled: bool) -> None:
        self.project.compiled_archive = enabled

    def publish_yaml_settings(self) -> None:
        self.project.yaml_settings = True

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def component(self, name: str) -> None:
        if self._include_components and name not in self._include_components:
            logger.debug("Skipping component %s", name)
            return
        logger.debug("Loading component %s", name)
        self.project.components.append(
            load_component(
                name,
                self.configdir / "components",
                self.project.settings,
                self.project.platform,
            )
        )

    # ------------------------------------------------------------------
    # Settings inheritance
    # ------------------------------------------------------------------

    def inherit_settings(
        self, name: str, git_url: str, ref: str, *, required: bool = False
    ) -> None:
        """Merge the settings of a live upstream project at this point."""
        self.project.load_upstream_settings(name, git_url, ref, required=required)

    def inherit_yaml_settings(self, uri: str, checksum_uri: str | None = None) -> None:
        """Merge a published settings snapshot at this point."""
        self.project.load_yaml_settings(uri, checksum_uri)

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def extra_file_to_sign(self, path: str) -> None:
        self.project.signing.extra_files.append(path)

    def signing_hostname(self, hostname: str) -> None:
        self.project.signing.hostname = hostname

    def signing_username(self, username: str) -> None:
        self.project.signing.username = username

    def signing_command(self, template: str) -> None:
        """Add a signing command; ``%{file}`` marks where the file path goes."""
        self.project.signing.add_command(template)

    def use_local_signing(self, enabled: bool) -> None:
        self.project.signing.use_local_signing = enabled

    # ------------------------------------------------------------------
    # Versioning from git
    # ------------------------------------------------------------------

    def version_from_git(self) -> None:
        """Version from ``git describe --tags``, dashes turned into dots."""
        try:
            described = _git_output(self._repo_dir, "describe", "HEAD", "--tags", "--abbrev=9")
        except ConfigurationError:
            logger.error(
                "Directory %s cannot be versioned by git. Maybe it hasn't been tagged yet?",
                self._repo_dir,
            )
            return
        self.version(".".join(part for part in described.split("-") if part))

    def release_from_git(self) -> None:
        """Release = number of commits since the last tag."""
        try:
            last_tag = _git_output(self._repo_dir, "describe", "HEAD", "--abbrev=0")
            count = _git_output(self._repo_dir, "rev-list", "--count", f"{last_tag}..HEAD")
        except ConfigurationError:
            logger.error(
                "Directory %s cannot be versioned by git. Maybe it hasn't been tagged yet?",
                self._repo_dir,
            )
            return
        self.release(count)

    def version_from_branch(self) -> str:
        """Dotted number found in the current branch name, e.g. ``maint/1.7.0/fix``."""
        branch = _git_output(self._repo_dir, "rev-parse", "--abbrev-ref", "HEAD")
        match = BRANCH_VERSION_RE.search(branch)
        if match is None:
            raise ConfigurationError(
                f"Can't find a version in branch {branch!r}; it must contain "
                "<number>.<number>, like maint/1.7.0/fixing-some-bugs"
            )
        return match.group(1)


def load_project(
    name: str,
    configdir: Path | str,
    platform: Platform,
    *,
    config: ForgeConfig | None = None,
    include_components: Iterable[str] = (),
    upstream_loader: UpstreamLoader | None = None,
) -> Project:
    """Evaluate ``<configdir>/projects/<name>.py`` for *platform*."""
    dsl = ProjectDSL(
        name,
        configdir,
        platform,
        config=config,
        include_components=include_components,
        upstream_loader=upstream_loader,
    )
    _entry_point(Path(configdir) / "projects" / f"{name}.py", "project")(dsl)
    logger.info(
        "Loaded project %s for %s with %d component(s)",
        name, platform.name, len(dsl.project.components),
    )
    return dsl.project


def load_description(
    project_name: str,
    platform_name: str,
    configdir: Path | str,
    *,
    config: ForgeConfig | None = None,
    include_components: Iterable[str] = (),
    upstream_loader: UpstreamLoader | None = None,
) -> Project:
    """Platform, then project (and its components), from one config dir."""
    configdir = Path(configdir)
    platform = load_platform_description(platform_name, configdir / "platforms", config=config)
    return load_project(
        project_name,
        configdir,
        platform,
        config=config,
        include_components=include_components,
        upstream_loader=upstream_loader,
    )
