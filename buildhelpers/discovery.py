"""
discovery.py

Responsibility: Find the package directories below a source tree.

- A directory is *buildable* when it directly contains the module marker
  file (`go.mod` by default).
- A directory is *testable* when it directly contains at least one source
  file whose name ends in the test suffix (`*_test.go` by default).

The walk is pre-order and descends into every subdirectory, including ones
already matched. Entries are visited in sorted order so repeated runs over
the same tree yield the same list; callers should still not rely on any
particular order. Unreadable subdirectories are skipped with a warning.
A root that is a file is checked on its own and yields its containing
directory.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path

from buildhelpers.errors import BuildHelpersError

logger = logging.getLogger(__name__)

DEFAULT_MODULE_MARKER = "go.mod"
DEFAULT_SOURCE_EXTENSION = ".go"
DEFAULT_TEST_SUFFIX = "_test"


class DiscoveryError(BuildHelpersError):
    pass


def _skip_unreadable(err: OSError) -> None:
    logger.warning("Skipping unreadable entry %s: %s", err.filename, err.strerror or err)


def _iter_files(root: str | Path) -> Iterator[tuple[Path, str]]:
    """
    Yield (containing directory, file name) for every non-directory entry below root.
    """
    root_path = Path(root)
    if not root_path.exists():
        raise DiscoveryError(f"Cannot search for packages, no such path: {root_path}")
    if not root_path.is_dir():
        yield root_path.parent, root_path.name
        return

    for dirpath, dirnames, filenames in os.walk(root_path, onerror=_skip_unreadable):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath), name


def _collect(root: str | Path, matches: Callable[[str], bool]) -> list[Path]:
    found: list[Path] = []
    seen: set[Path] = set()
    for directory, name in _iter_files(root):
        if matches(name) and directory not in seen:
            seen.add(directory)
            found.append(directory)
    return found


def find_buildable_packages(root: str | Path, *, module_marker: str = DEFAULT_MODULE_MARKER) -> list[Path]:
    """
    Return every directory below `root` that contains `module_marker`.
    """
    packages = _collect(root, lambda name: name == module_marker)
    logger.info("Found %d buildable package(s) below %s", len(packages), root)
    return packages


def is_test_file(
    name: str,
    *,
    source_extension: str = DEFAULT_SOURCE_EXTENSION,
    test_suffix: str = DEFAULT_TEST_SUFFIX,
) -> bool:
    return os.path.splitext(name)[1] == source_extension and name.endswith(test_suffix + source_extension)


def find_testable_packages(
    root: str | Path,
    *,
    source_extension: str = DEFAULT_SOURCE_EXTENSION,
    test_suffix: str = DEFAULT_TEST_SUFFIX,
) -> list[Path]:
    """
    Return every directory below `root` holding at least one test source file.
    """
    packages = _collect(
        root,
        lambda name: is_test_file(name, source_extension=source_extension, test_suffix=test_suffix),
    )
    logger.info("Found %d testable package(s) below %s", len(packages), root)
    return packages
