from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import IO

import pytest

from buildhelpers.errors import CommandError

TESTDATA = Path(__file__).parent / "testdata"


class FakeRunner:
    """Stands in for `run_command`; packages whose directory name is in `failing` exit 1."""

    def __init__(self, failing: Sequence[str] = ()) -> None:
        self.failing = set(failing)
        self.calls: list[tuple[list[str], str]] = []

    def __call__(
        self,
        cmd: Sequence[str],
        *,
        cwd: str | Path,
        stdout: IO[bytes] | None = None,
        stderr: IO[bytes] | None = None,
    ) -> None:
        self.calls.append(([str(c) for c in cmd], str(cwd)))
        if stdout is not None:
            stdout.write(f"ran in {Path(cwd).name}\n".encode())
            stdout.flush()
        if Path(cwd).name in self.failing:
            raise CommandError(cmd, cwd, 1)

    @property
    def cwds(self) -> list[str]:
        return [Path(cwd).name for _cmd, cwd in self.calls]


@pytest.fixture
def fake_runner(monkeypatch: pytest.MonkeyPatch):
    def install(failing: Sequence[str] = ()) -> FakeRunner:
        runner = FakeRunner(failing)
        monkeypatch.setattr("buildhelpers.orchestrate.run_command", runner)
        monkeypatch.setattr("buildhelpers.converter.run_command", runner)
        return runner

    return install


def git(repo: Path, *args: str) -> str:
    env = dict(os.environ)
    env.update(
        GIT_AUTHOR_NAME="buildhelpers",
        GIT_AUTHOR_EMAIL="buildhelpers@example.invalid",
        GIT_COMMITTER_NAME="buildhelpers",
        GIT_COMMITTER_EMAIL="buildhelpers@example.invalid",
    )
    proc = subprocess.run(["git", *args], cwd=repo, env=env, check=True, stdout=subprocess.PIPE, text=True)
    return proc.stdout


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")
requires_go = pytest.mark.skipif(shutil.which("go") is None, reason="go is not installed")


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "commit.gpgsign", "false")
    return repo


def commit_file(repo: Path, name: str, content: str, message: str) -> None:
    (repo / name).write_text(content, encoding="utf-8")
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message)
