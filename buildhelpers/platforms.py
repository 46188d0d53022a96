"""
platforms.py

Responsibility: Per-platform differences in one table.

Callers resolve a `Platform` once at entry and read its fields instead of
branching on the operating system inline.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

from buildhelpers.errors import BuildHelpersError, OsNotSupportedError


class PlatformError(BuildHelpersError):
    pass


@dataclass(frozen=True)
class Platform:
    name: str
    exe_suffix: str = ""
    race_detector: bool = True
    reads_os_release: bool = True

    def executable_name(self, base_name: str) -> str:
        return f"{base_name}{self.exe_suffix}"

    def test_args(self) -> list[str]:
        if self.race_detector:
            return ["test", "-v", "-race"]
        return ["test", "-v"]

    def cover_args(self) -> list[str]:
        return ["test", "-v", "-cover"]


PLATFORMS: dict[str, Platform] = {
    "linux": Platform("linux"),
    "darwin": Platform("darwin", reads_os_release=False),
    "windows": Platform("windows", exe_suffix=".exe", race_detector=False, reads_os_release=False),
}


def current_platform_name() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform.startswith("linux"):
        return "linux"
    return sys.platform


def resolve_platform(name: str | None = None) -> Platform:
    """
    Look up the capabilities for `name` (default: the running platform).
    Unknown platforms get the Unix defaults.
    """
    key = name or current_platform_name()
    return PLATFORMS.get(key, Platform(key))


def read_os_distribution(
    os_release: str | Path = "/etc/os-release",
    *,
    platform: Platform | None = None,
) -> str:
    """
    Return the distribution id (the `ID=` line) from an os-release file.

    Only works on systems following the Filesystem Hierarchy Standard;
    Windows and macOS raise OsNotSupportedError.
    """
    plat = platform or resolve_platform()
    if not plat.reads_os_release:
        raise OsNotSupportedError(plat.name, "read_os_distribution")

    path = Path(os_release)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PlatformError(f"Cannot read {path}: {e}") from e

    distribution = ""
    for line in text.splitlines():
        if line.startswith("ID="):
            distribution = line[len("ID="):]
    return distribution
