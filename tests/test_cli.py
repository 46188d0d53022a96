"""Tests for the CLI wiring."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from buildhelpers import cli
from buildhelpers.version import VersionError, VersionInfo

from .conftest import TESTDATA

INFO = VersionInfo(version="1.2.5", height=5, git_hash="abc1234")


@pytest.fixture(autouse=True)
def _in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


def test_discover_prints_packages(capsys: pytest.CaptureFixture[str]) -> None:
    project = TESTDATA / "testProject"
    assert cli.main(["discover", "build", "--source-dir", str(project)]) == 0
    assert capsys.readouterr().out.splitlines() == [str(project / "main")]


def test_discover_missing_dir_fails(tmp_path: Path) -> None:
    assert cli.main(["discover", "test", "--source-dir", str(tmp_path / "missing")]) == 1


def test_build_renders_ldflags(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen: dict[str, object] = {}

    def fake_build(packages, bin_dir, ldflags, *, toolchain):
        seen.update(packages=packages, bin_dir=bin_dir, ldflags=ldflags, toolchain=toolchain)
        return []

    monkeypatch.setattr(cli, "build_folders", fake_build)
    monkeypatch.setattr(cli, "describe_version", lambda version_file: INFO)

    code = cli.main(["build", str(tmp_path), "--ldflags=-X main.version={{ version }}"])

    assert code == 0
    assert seen == {
        "packages": [tmp_path],
        "bin_dir": "bin",
        "ldflags": "-X main.version=1.2.5",
        "toolchain": "go",
    }


def test_test_collect_all_exit_code(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(cli, "run_test_folders", lambda packages, log_dir, log_name, *, toolchain: [RuntimeError("x")])
    assert cli.main(["test", str(tmp_path)]) == 1

    monkeypatch.setattr(cli, "run_test_folders", lambda packages, log_dir, log_name, *, toolchain: [])
    assert cli.main(["test", str(tmp_path)]) == 0


def test_zip_uses_config_and_creates_parent(tmp_path: Path) -> None:
    (tmp_path / "bin").mkdir()
    (tmp_path / "bin" / "tool").write_text("binary")
    (tmp_path / "buildhelpers.yaml").write_text("archive: out/dist/build.zip\nartifacts: [bin, missing]\n")

    assert cli.main(["zip", "--reproducible"]) == 0

    with zipfile.ZipFile(tmp_path / "out" / "dist" / "build.zip") as zf:
        assert zf.namelist() == ["bin/", "bin/tool"]


def test_version_output(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(cli, "describe_version", lambda version_file, work_dir: INFO)
    assert cli.main(["version"]) == 0
    assert capsys.readouterr().out.splitlines() == ["version=1.2.5", "height=5", "git_hash=abc1234"]


def test_version_failure(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    def boom(version_file, work_dir):
        raise VersionError("not a repository")

    monkeypatch.setattr(cli, "describe_version", boom)
    assert cli.main(["version"]) == 1
    assert cli.main(["version", "--allow-unknown"]) == 0
    assert "height=-1" in capsys.readouterr().out


def test_clean_removes_default_dirs(tmp_path: Path) -> None:
    (tmp_path / "bin").mkdir()
    (tmp_path / "logs").mkdir()
    (tmp_path / "extra.txt").write_text("x")
    assert cli.main(["clean", "extra.txt"]) == 0
    assert not any((tmp_path / name).exists() for name in ("bin", "logs", "extra.txt"))


def test_release_requires_token(tmp_path: Path) -> None:
    asset = tmp_path / "build.zip"
    asset.write_bytes(b"zip")
    assert cli.main(["release", str(asset), "--github-owner", "o", "--github-repo", "r"]) == 1


def test_release_creates_and_uploads(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    asset = tmp_path / "build.zip"
    asset.write_bytes(b"zip")
    events: list[tuple] = []

    class FakeClient:
        def __init__(self, token: str, api_base: str) -> None:
            events.append(("init", token))

        def get_release_by_tag(self, owner, repo, tag):
            events.append(("get", owner, repo, tag))
            return None

        def create_release(self, **kwargs):
            events.append(("create", kwargs["tag"]))
            return "release"

        def upload_asset(self, release, path):
            events.append(("upload", release, Path(path).name))
            return "https://dl/build.zip"

    monkeypatch.setattr(cli, "GitHubClient", FakeClient)
    monkeypatch.setattr(cli, "describe_version", lambda version_file: INFO)
    monkeypatch.setenv("GITHUB_TOKEN", "tok")

    assert cli.main(["release", str(asset), "--github-owner", "o", "--github-repo", "r"]) == 0
    assert events == [
        ("init", "tok"),
        ("get", "o", "r", "v1.2.5"),
        ("create", "v1.2.5"),
        ("upload", "release", "build.zip"),
    ]


def test_os_release_missing_file_fails(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("buildhelpers.platforms.current_platform_name", lambda: "linux")
    assert cli.main(["os-release", "--file", str(tmp_path / "no-os-release")]) == 1


def test_os_release_prints_id(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr("buildhelpers.platforms.current_platform_name", lambda: "linux")
    os_release = tmp_path / "os-release"
    os_release.write_text("ID=debian\n")
    assert cli.main(["os-release", "--file", str(os_release)]) == 0
    assert capsys.readouterr().out.strip() == "debian"


def test_zip_output_below_a_file_fails(tmp_path: Path) -> None:
    (tmp_path / "bin").mkdir()
    (tmp_path / "blocker").write_text("")
    assert cli.main(["zip", "bin", "-o", str(tmp_path / "blocker" / "out.zip")]) == 1
