"""
fsutil.py

Responsibility: Small filesystem primitives used by the orchestrators,
the archive builder and the CLI.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from buildhelpers.errors import BuildHelpersError


class FilesystemError(BuildHelpersError):
    pass


def ensure_directory_exists(path: str | Path) -> Path:
    """
    Create `path` (and any missing parents) unless it already exists.

    Raises FilesystemError if `path` exists but is not a directory, or
    cannot be created.
    """
    p = Path(path)
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Cannot create directory {p}: {e}") from e
    return p


def remove_paths(paths: Iterable[str | Path]) -> None:
    """
    Delete every given file or directory tree. Paths that do not exist are ignored.
    """
    for path in paths:
        p = Path(path)
        try:
            if p.is_dir() and not p.is_symlink():
                shutil.rmtree(p)
            elif p.exists() or p.is_symlink():
                p.unlink()
        except OSError as e:
            raise FilesystemError(f"Cannot remove {p}: {e}") from e


def path_exists(path: str | Path) -> bool:
    """
    True unless the path is known not to exist. A path that cannot be
    inspected (e.g. permission denied on a parent) counts as existing.
    """
    try:
        os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return False
    except OSError:
        return True
    return True
