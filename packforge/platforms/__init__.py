"""Platform variants and the name -> variant lookup.

Usage::

    from packforge.platforms import load_platform

    platform = load_platform("osx-15-arm64")
    commands = platform.generate_package(project)
"""

from __future__ import annotations

from packforge.config import ForgeConfig
from packforge.core.errors import ConfigurationError
from packforge.platforms.base import Platform
from packforge.platforms.deb import DebPlatform
from packforge.platforms.macos import MacOSPlatform
from packforge.platforms.rpm import RpmPlatform
from packforge.platforms.windows import WindowsPlatform

# ---------------------------------------------------------------------------
# OS name prefix -> platform class
# ---------------------------------------------------------------------------

PLATFORM_FAMILIES: dict[str, type[Platform]] = {
    "debian": DebPlatform,
    "ubuntu": DebPlatform,
    "el": RpmPlatform,
    "redhat": RpmPlatform,
    "redhatfips": RpmPlatform,
    "fedora": RpmPlatform,
    "sles": RpmPlatform,
    "amazon": RpmPlatform,
    "osx": MacOSPlatform,
    "macos": MacOSPlatform,
    "windows": WindowsPlatform,
}


def platform_class_for(name: str) -> type[Platform]:
    """Return the platform class for a ``<os>-<version>-<arch>`` name.

    Raises ``ConfigurationError`` for an unknown OS family.
    """
    os_name = name.split("-", 1)[0].lower()
    try:
        return PLATFORM_FAMILIES[os_name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown platform family for {name!r}. "
            f"Known: {sorted(PLATFORM_FAMILIES)}"
        ) from None


def load_platform(name: str, config: ForgeConfig | None = None) -> Platform:
    """Instantiate the built-in variant for *name* with its defaults."""
    return platform_class_for(name)(name, config=config)


__all__ = [
    "Platform",
    "DebPlatform",
    "RpmPlatform",
    "MacOSPlatform",
    "WindowsPlatform",
    "PLATFORM_FAMILIES",
    "platform_class_for",
    "load_platform",
]
