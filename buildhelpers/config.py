"""
config.py

Responsibility: Load the optional `buildhelpers.yaml` into a typed model.

A missing file means "all defaults". The CLI applies its own flags on top
of the loaded values.

Recognised keys:
- source_dir, bin_dir, log_dir: str
- test_log, cover_log, xml_result, version_file: str
- ldflags, archive: str (may contain version placeholders)
- artifacts: list[str]
- toolchain: {binary, module_marker, source_extension, test_suffix, converter, converter_version}
- github: {owner, repo, prerelease, api_base}
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from buildhelpers.converter import DEFAULT_CONVERTER, DEFAULT_CONVERTER_VERSION
from buildhelpers.discovery import DEFAULT_MODULE_MARKER, DEFAULT_SOURCE_EXTENSION, DEFAULT_TEST_SUFFIX
from buildhelpers.errors import BuildHelpersError

DEFAULT_CONFIG_NAME = "buildhelpers.yaml"


class ConfigError(BuildHelpersError):
    pass


@dataclass(frozen=True)
class ToolchainConfig:
    binary: str = "go"
    module_marker: str = DEFAULT_MODULE_MARKER
    source_extension: str = DEFAULT_SOURCE_EXTENSION
    test_suffix: str = DEFAULT_TEST_SUFFIX
    converter: str = DEFAULT_CONVERTER
    converter_version: str = DEFAULT_CONVERTER_VERSION


@dataclass(frozen=True)
class GitHubConfig:
    owner: str | None = None
    repo: str | None = None
    prerelease: bool = False
    api_base: str = "https://api.github.com"


@dataclass(frozen=True)
class BuildConfig:
    """Directories, file names and tool settings for one repository."""

    source_dir: str = "."
    bin_dir: str = "bin"
    log_dir: str = "logs"
    test_log: str = "TestRun.log"
    cover_log: str = "CoverRun.log"
    xml_result: str = "logs/TestRun.xml"
    version_file: str = "VersionMaster.txt"
    ldflags: str = ""
    archive: str = "dist/build.zip"
    artifacts: tuple[str, ...] = ("bin",)
    toolchain: ToolchainConfig = field(default_factory=ToolchainConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    raw = data.get(key) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"`{key}` must be an object/mapping when provided.")
    return raw


def _strings(section: dict[str, Any], cls: type, where: str) -> dict[str, Any]:
    """
    Pick the keys of `section` that are string fields of `cls`, rejecting non-scalars.
    """
    out: dict[str, Any] = {}
    names = {f.name for f in fields(cls) if f.type == "str" or f.type == "str | None"}
    for name in names:
        if name not in section or section[name] is None:
            continue
        value = section[name]
        if isinstance(value, (dict, list)):
            raise ConfigError(f"`{where}{name}` must be a string.")
        out[name] = str(value).strip()
    return out


def parse_config(data: dict[str, Any]) -> BuildConfig:
    if not isinstance(data, dict):
        raise ConfigError("Config must be a mapping/object at the top level.")

    toolchain = ToolchainConfig(**_strings(_section(data, "toolchain"), ToolchainConfig, "toolchain."))

    gh_raw = _section(data, "github")
    github = GitHubConfig(
        **_strings(gh_raw, GitHubConfig, "github."),
        prerelease=bool(gh_raw.get("prerelease", False)),
    )

    artifacts_raw = data.get("artifacts")
    if artifacts_raw is None:
        artifacts: tuple[str, ...] = BuildConfig.artifacts
    elif isinstance(artifacts_raw, list):
        artifacts = tuple(str(a) for a in artifacts_raw)
    else:
        raise ConfigError("`artifacts` must be a list of paths when provided.")

    return BuildConfig(
        **_strings(data, BuildConfig, ""),
        artifacts=artifacts,
        toolchain=toolchain,
        github=github,
    )


def load_config(path: str | Path | None = None) -> BuildConfig:
    """
    Load the config file at `path` (default: `buildhelpers.yaml` in the
    current directory). An explicitly given path must exist.
    """
    explicit = path is not None
    cfg_path = Path(path) if path is not None else Path(DEFAULT_CONFIG_NAME)
    if not cfg_path.exists():
        if explicit:
            raise ConfigError(f"Config file does not exist: {cfg_path}")
        return BuildConfig()

    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {cfg_path}: {e}") from e
    return parse_config(data or {})
