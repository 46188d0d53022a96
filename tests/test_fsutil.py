"""Tests for the filesystem primitives."""

from __future__ import annotations

from pathlib import Path

import pytest

from buildhelpers.fsutil import FilesystemError, ensure_directory_exists, path_exists, remove_paths


def test_ensure_directory_exists_creates_nested(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b"
    assert ensure_directory_exists(target) == target
    assert target.is_dir()
    # Second call is a no-op.
    ensure_directory_exists(target)


def test_ensure_directory_exists_rejects_file(tmp_path: Path) -> None:
    f = tmp_path / "file"
    f.write_text("x")
    with pytest.raises(FilesystemError):
        ensure_directory_exists(f)


def test_remove_paths_files_trees_and_missing(tmp_path: Path) -> None:
    tree = tmp_path / "tree"
    (tree / "sub").mkdir(parents=True)
    (tree / "sub" / "f.txt").write_text("x")
    single = tmp_path / "single.txt"
    single.write_text("y")

    remove_paths([tree, single, tmp_path / "missing"])

    assert not tree.exists()
    assert not single.exists()


def test_path_exists(tmp_path: Path) -> None:
    assert path_exists(tmp_path)
    assert not path_exists(tmp_path / "missing")
    f = tmp_path / "f"
    f.write_text("")
    assert path_exists(f)
    assert not path_exists(f / "below-a-file")
