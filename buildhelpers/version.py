"""
version.py

Responsibility: Derive version numbers from git history.

- `get_git_hash`: `git describe --always --long --dirty` of the work tree.
- `get_git_height`: number of commits after the last commit that changed a
  given file, up to and including HEAD (the "git height").
- `compose_version`: `<major>.<minor>` from the version file plus the height.

Every failure raises VersionError, including a height that git reports in a
form that cannot be parsed. `UNKNOWN_HEIGHT` is the value callers may report
when they choose to tolerate such a failure.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from buildhelpers.errors import BuildHelpersError, CommandError
from buildhelpers.process import capture_output

logger = logging.getLogger(__name__)

UNKNOWN_HEIGHT = -1

_VERSION_BASE_RE = re.compile(r"^\d+\.\d+$")


class VersionError(BuildHelpersError):
    pass


@dataclass(frozen=True)
class VersionInfo:
    version: str
    height: int
    git_hash: str


def _git(args: list[str], work_dir: str | Path) -> str:
    try:
        return capture_output(["git", *args], cwd=work_dir)
    except CommandError as e:
        raise VersionError(f"git {args[0]} failed in {work_dir}: {e}") from e


def _clean_hash(raw: str) -> str:
    return raw.strip().strip('"').strip()


def get_git_hash(work_dir: str | Path = ".") -> str:
    """
    Return the `git describe` string (tag, offset, short hash, `-dirty` marker).
    """
    return _git(["describe", "--always", "--long", "--dirty"], work_dir).strip()


def get_git_height(version_file: str | Path, work_dir: str | Path = ".") -> int:
    """
    Count the commits since `version_file` last changed.

    The commit that changed the file is excluded, HEAD is included, so a
    file changed in the HEAD commit has height 0. Renames are followed.
    """
    last_change = _clean_hash(_git(["log", '--pretty=format:"%H"', "-n", "1", "--follow", str(version_file)], work_dir))
    if not last_change:
        raise VersionError(f"No commit in {work_dir} touches {version_file}")

    head = _clean_hash(_git(["log", '--pretty=format:"%H"', "-n", "1"], work_dir))

    raw_count = _git(["rev-list", "--count", f"{last_change}..{head}"], work_dir).strip()
    try:
        height = int(raw_count)
    except ValueError as e:
        raise VersionError(f"git rev-list returned a non-numeric count: {raw_count!r}") from e

    logger.debug("Height of %s at %s is %d", version_file, head, height)
    return height


def read_version_base(version_file: str | Path) -> str:
    """
    Read the `<major>.<minor>` prefix stored in the version file.
    """
    path = Path(version_file)
    try:
        text = path.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise VersionError(f"Cannot read version file {path}: {e}") from e
    if not _VERSION_BASE_RE.match(text):
        raise VersionError(f"Version file {path} must contain '<major>.<minor>', got {text!r}")
    return text


def compose_version(base: str, height: int) -> str:
    if height < 0:
        raise VersionError(f"Cannot compose a version from height {height}")
    return f"{base}.{height}"


def describe_version(version_file: str | Path, work_dir: str | Path = ".") -> VersionInfo:
    """
    Collect version, height and describe-hash for the repository at `work_dir`.

    `version_file` is relative to `work_dir`.
    """
    base = read_version_base(Path(work_dir) / version_file)
    height = get_git_height(version_file, work_dir)
    info = VersionInfo(version=compose_version(base, height), height=height, git_hash=get_git_hash(work_dir))
    logger.info("Version %s (height %d, %s)", info.version, info.height, info.git_hash)
    return info
