"""Fetchable sources for settings snapshots and upstream projects.

Source kind is decided by URI scheme:

    file://            local file
    http://, https://  network file (requests)
    git://, git+..., ssh://, *.git
                       version-controlled tree (git CLI)

Snapshot fetches only accept the first two kinds; upstream project fetches
only accept git.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from enum import Enum
from pathlib import Path
from urllib.parse import unquote, urlparse

import requests

from packforge.core.errors import (
    ConfigurationError,
    SettingsSourceNotFoundError,
    UpstreamFetchError,
    VerificationError,
)

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    LOCAL = "local"
    HTTP = "http"
    GIT = "git"


def determine_source_kind(uri: str) -> SourceKind | None:
    """Classify *uri*; returns None for anything unsupported."""
    parsed = urlparse(uri)
    scheme = parsed.scheme.lower()
    if scheme.startswith("git") or parsed.path.endswith(".git"):
        return SourceKind.GIT
    if scheme == "file":
        return SourceKind.LOCAL
    if scheme in ("http", "https"):
        return SourceKind.HTTP
    return None


def local_path_from_uri(uri: str) -> Path:
    """Filesystem path of a ``file://`` URI."""
    parsed = urlparse(uri)
    return Path(unquote(parsed.netloc + parsed.path))


# ---------------------------------------------------------------------------
# File sources
# ---------------------------------------------------------------------------


class LocalFileSource:
    """A file already on disk."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        self.path = local_path_from_uri(uri)

    def fetch(self, workdir: Path) -> Path:
        if not self.path.is_file():
            raise SettingsSourceNotFoundError(f"No such settings file: {self.path}")
        return self.path

    def read_text(self) -> str:
        if not self.path.is_file():
            raise SettingsSourceNotFoundError(f"No such file: {self.path}")
        return self.path.read_text(encoding="utf-8")


class HttpFileSource:
    """A file downloaded over HTTP(S) with requests."""

    def __init__(
        self,
        uri: str,
        *,
        timeout: int = 30,
        session: requests.Session | None = None,
    ) -> None:
        self.uri = uri
        self._timeout = timeout
        # Module-level requests.get when no session is shared
        self._http = session or requests

    def fetch(self, workdir: Path) -> Path:
        filename = Path(urlparse(self.uri).path).name or "download"
        destination = Path(workdir) / filename
        response = self._http.get(self.uri, stream=True, timeout=self._timeout)
        response.raise_for_status()
        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=8192):
                f.write(chunk)
        logger.debug("Downloaded %s to %s", self.uri, destination)
        return destination

    def read_text(self) -> str:
        response = self._http.get(self.uri, timeout=self._timeout)
        response.raise_for_status()
        return response.text


def file_source(
    uri: str,
    *,
    timeout: int = 30,
    session: requests.Session | None = None,
) -> LocalFileSource | HttpFileSource:
    """Return the file source for *uri*.

    Raises ``ConfigurationError`` for git URIs and unknown schemes.
    """
    kind = determine_source_kind(uri)
    if kind is SourceKind.LOCAL:
        return LocalFileSource(uri)
    if kind is SourceKind.HTTP:
        return HttpFileSource(uri, timeout=timeout, session=session)
    if kind is SourceKind.GIT:
        raise ConfigurationError(
            f"Git sources are not supported for settings snapshots: {uri}. "
            "Use inherit_settings to inherit from a live project."
        )
    raise ConfigurationError(f"Unsupported settings source: {uri}")


def fetch_checksum(
    uri: str | None,
    *,
    timeout: int = 30,
    session: requests.Session | None = None,
) -> str:
    """Read the text of a checksum file; any failure is a VerificationError."""
    if not uri:
        raise VerificationError("A checksum URI is required for this source")
    try:
        return file_source(uri, timeout=timeout, session=session).read_text()
    except (requests.RequestException, OSError, ConfigurationError) as exc:
        raise VerificationError(f"Unable to fetch checksum {uri}: {exc}") from exc


# ---------------------------------------------------------------------------
# Git source
# ---------------------------------------------------------------------------


class GitSource:
    """A git repository checked out at a ref with the git CLI."""

    def __init__(self, url: str, ref: str) -> None:
        self.url = url
        self.ref = ref

    @property
    def dirname(self) -> str:
        name = self.url.rstrip("/").rsplit("/", 1)[-1]
        return name.removesuffix(".git") or "upstream"

    def fetch(self, workdir: Path) -> Path:
        """Clone into ``workdir/<dirname>`` and check out ``ref``."""
        if shutil.which("git") is None:
            raise UpstreamFetchError("git is not installed")
        destination = Path(workdir) / self.dirname
        self._git("clone", self.url, str(destination))
        self._git("-C", str(destination), "checkout", self.ref)
        return destination

    def _git(self, *args: str) -> None:
        proc = subprocess.run(["git", *args], capture_output=True, text=True)
        if proc.returncode != 0:
            raise UpstreamFetchError(
                f"git {' '.join(args)} failed: {proc.stderr.strip()}"
            )
