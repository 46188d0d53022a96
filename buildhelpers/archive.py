"""
archive.py

Responsibility: Pack one or more source trees into a single zip archive.

Rules:
- Entry names are relative to the *parent* of each source root, so the root's
  own directory name is the top-level entry (`myDir1/`, `myDir1/a.txt`, ...).
  Several roots can share one archive as long as their base names differ.
- Directory entries end with `/` and carry no content; files are deflated.
- Entries are written in sorted walk order and always use `/` separators.
- A source root that does not exist is skipped. A destination that cannot
  be created is an error raised before any source is read.
- A symlink to a directory aborts the call, as does any other failure.
  The partially written archive is left on disk.
"""

from __future__ import annotations

import logging
import os
import shutil
import zipfile
from collections.abc import Iterable, Iterator
from pathlib import Path

from buildhelpers.errors import BuildHelpersError

logger = logging.getLogger(__name__)

# Earliest timestamp the zip format can represent.
REPRODUCIBLE_DATE_TIME = (1980, 1, 1, 0, 0, 0)


class ArchiveError(BuildHelpersError):
    pass


def _raise(err: OSError) -> None:
    raise err


def _iter_tree(source: str) -> Iterator[str]:
    """
    Yield every path below (and including) `source`, directories before their contents.
    """
    if not os.path.isdir(source):
        yield source
        return
    for dirpath, dirnames, filenames in os.walk(source, onerror=_raise):
        dirnames.sort()
        for name in dirnames:
            if os.path.islink(os.path.join(dirpath, name)):
                raise ArchiveError(f"Cannot archive directory symlink {os.path.join(dirpath, name)}")
        yield dirpath
        for name in sorted(filenames):
            yield os.path.join(dirpath, name)


def entry_name(path: str | Path, source: str | Path) -> str:
    """
    Archive name of `path`, relative to the parent of `source`, with `/` separators.
    """
    base = os.path.dirname(os.path.abspath(source))
    rel = os.path.relpath(os.path.abspath(path), base)
    return rel.replace(os.sep, "/")


def _add_entry(writer: zipfile.ZipFile, path: str, name: str, *, reproducible: bool) -> None:
    info = zipfile.ZipInfo.from_file(path, arcname=name)
    if reproducible:
        info.date_time = REPRODUCIBLE_DATE_TIME

    if info.is_dir():
        writer.writestr(info, b"")
        return

    info.compress_type = zipfile.ZIP_DEFLATED
    with open(path, "rb") as src, writer.open(info, "w") as dst:
        shutil.copyfileobj(src, dst)


def zip_folders(sources: Iterable[str | Path], target: str | Path, *, reproducible: bool = False) -> Path:
    """
    Zip the given source trees recursively into `target`, truncating it first.

    With `reproducible=True` every entry gets the same fixed timestamp, so
    identical trees produce byte-identical archives.
    """
    source_list = [str(s) for s in sources]
    target_path = Path(target)
    logger.info("Zip %s into %s", source_list, target_path)

    try:
        handle = open(target_path, "wb")
    except OSError as e:
        raise ArchiveError(f"Cannot create archive {target_path}: {e}") from e

    with handle, zipfile.ZipFile(handle, "w", compression=zipfile.ZIP_DEFLATED) as writer:
        for source in source_list:
            if not os.path.exists(source):
                logger.info("Skipping missing archive source %s", source)
                continue
            try:
                for path in _iter_tree(source):
                    _add_entry(writer, path, entry_name(path, source), reproducible=reproducible)
            except (OSError, ValueError, zipfile.BadZipFile) as e:
                raise ArchiveError(f"Cannot add {source} to archive {target_path}: {e}") from e

    return target_path
