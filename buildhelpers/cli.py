"""
cli.py

Responsibility: CLI entrypoint for CI scripts.

Each subcommand maps onto one library operation:
- discover / build / test / cover: package discovery and orchestration
- convert / install-converter: JUnit XML conversion of test logs
- zip: archive build artifacts
- version: git height and hash derived version
- os-release, clean: small environment helpers
- release: publish archives as GitHub release assets

Settings come from `buildhelpers.yaml` (see `config.py`); flags override them.
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from buildhelpers import __version__
from buildhelpers.archive import zip_folders
from buildhelpers.config import BuildConfig, load_config
from buildhelpers.converter import convert_test_results, install_test_converter
from buildhelpers.discovery import find_buildable_packages, find_testable_packages
from buildhelpers.errors import BuildHelpersError
from buildhelpers.fsutil import ensure_directory_exists, remove_paths
from buildhelpers.github_client import GitHubClient
from buildhelpers.log import LEVELS, bind_context, configure_logging
from buildhelpers.orchestrate import (
    build_folders,
    cover_test_folders,
    run_test_folders,
    run_test_folders_early_exit,
)
from buildhelpers.platforms import read_os_distribution
from buildhelpers.templating import has_placeholders, render_string, version_context
from buildhelpers.version import UNKNOWN_HEIGHT, VersionError, describe_version

logger = logging.getLogger(__name__)


class CLIError(BuildHelpersError):
    pass


def _render(text: str, config: BuildConfig) -> str:
    """
    Substitute version placeholders, querying git only when the text needs it.
    """
    if not has_placeholders(text):
        return text
    info = describe_version(config.version_file)
    return render_string(text, version_context(info))


def _buildable(args: argparse.Namespace, config: BuildConfig) -> list[Path]:
    if args.packages:
        return [Path(p) for p in args.packages]
    return find_buildable_packages(
        args.source_dir or config.source_dir,
        module_marker=config.toolchain.module_marker,
    )


def _testable(args: argparse.Namespace, config: BuildConfig) -> list[Path]:
    if args.packages:
        return [Path(p) for p in args.packages]
    return find_testable_packages(
        args.source_dir or config.source_dir,
        source_extension=config.toolchain.source_extension,
        test_suffix=config.toolchain.test_suffix,
    )


def discover_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    packages = _buildable(args, config) if args.kind == "build" else _testable(args, config)
    for package in packages:
        print(package)
    return 0


def build_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    ldflags = config.ldflags if args.ldflags is None else args.ldflags
    build_folders(
        _buildable(args, config),
        args.bin_dir or config.bin_dir,
        _render(ldflags, config),
        toolchain=config.toolchain.binary,
    )
    return 0


def _convert(args: argparse.Namespace, config: BuildConfig, log_name: str) -> None:
    log_dir = args.log_dir or config.log_dir
    convert_test_results(
        Path(log_dir) / log_name,
        args.xml or config.xml_result,
        ".",
        toolchain=config.toolchain.binary,
        converter=config.toolchain.converter,
    )


def test_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    packages = _testable(args, config)
    log_dir = args.log_dir or config.log_dir
    log_name = args.log_file or config.test_log

    if args.fail_fast:
        try:
            run_test_folders_early_exit(packages, log_dir, log_name, toolchain=config.toolchain.binary)
        finally:
            if args.junit:
                _convert(args, config, log_name)
        return 0

    failures = run_test_folders(packages, log_dir, log_name, toolchain=config.toolchain.binary)
    if args.junit:
        _convert(args, config, log_name)
    for failure in failures:
        logger.error("%s", failure)
    if failures:
        logger.error("%d of %d package(s) failed", len(failures), len(packages))
        return 1
    return 0


def cover_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    cover_test_folders(
        _testable(args, config),
        args.log_dir or config.log_dir,
        args.log_file or config.cover_log,
        toolchain=config.toolchain.binary,
    )
    return 0


def convert_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    convert_test_results(
        args.log or str(Path(config.log_dir) / config.test_log),
        args.xml or config.xml_result,
        args.work_dir,
        toolchain=config.toolchain.binary,
        converter=config.toolchain.converter,
    )
    return 0


def install_converter_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    install_test_converter(
        args.work_dir,
        toolchain=config.toolchain.binary,
        converter=config.toolchain.converter,
        version=config.toolchain.converter_version,
    )
    return 0


def zip_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    sources = args.sources or list(config.artifacts)
    target = Path(_render(args.output or config.archive, config))
    ensure_directory_exists(target.parent)
    zip_folders(sources, target, reproducible=bool(args.reproducible))
    print(target)
    return 0


def version_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    version_file = args.version_file or config.version_file
    try:
        info = describe_version(version_file, args.work_dir)
    except VersionError as e:
        if not args.allow_unknown:
            raise
        logger.warning("Version unknown: %s", e)
        print("version=")
        print(f"height={UNKNOWN_HEIGHT}")
        print("git_hash=")
        return 0
    # key=value lines can be appended to $GITHUB_ENV as-is.
    print(f"version={info.version}")
    print(f"height={info.height}")
    print(f"git_hash={info.git_hash}")
    return 0


def os_release_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    print(read_os_distribution(args.file))
    return 0


def clean_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    paths = [config.bin_dir, config.log_dir, *args.paths]
    logger.info("Removing %s", paths)
    remove_paths(paths)
    return 0


def release_cmd(args: argparse.Namespace, config: BuildConfig) -> int:
    owner = args.github_owner or config.github.owner
    repo = args.github_repo or config.github.repo
    if not owner or not repo:
        raise CLIError("GitHub owner and repo are required (use --github-owner/--github-repo or the config)")
    token = args.github_token or os.environ.get("GITHUB_TOKEN") or ""
    if not token:
        raise CLIError("GitHub token is required (use --github-token or set GITHUB_TOKEN)")

    assets = [Path(a) for a in args.assets] or [Path(_render(config.archive, config))]
    missing = [str(a) for a in assets if not a.is_file()]
    if missing:
        raise CLIError(f"Release assets not found: {', '.join(missing)}")

    info = describe_version(config.version_file)
    tag = f"v{info.version}"
    gh = GitHubClient(token, api_base=config.github.api_base)

    release = gh.get_release_by_tag(owner, repo, tag)
    if release is None:
        release = gh.create_release(
            owner=owner,
            repo=repo,
            tag=tag,
            name=f"Release {tag}",
            prerelease=config.github.prerelease,
        )

    for asset in assets:
        print(gh.upload_asset(release, asset))
    return 0


def _add_package_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("packages", nargs="*", help="Package directories (default: discover below --source-dir)")
    p.add_argument("--source-dir", default=None, help="Directory to search for packages")


def _add_log_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--log-dir", default=None, help="Directory of the log file")
    p.add_argument("--log-file", default=None, help="Name of the log file")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="buildhelpers", description="Build, test and package helpers for CI scripts")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", default=None, help="Config file (default: ./buildhelpers.yaml if present)")
    p.add_argument(
        "--log-level",
        type=str.upper,
        choices=LEVELS,
        default=os.environ.get("BUILDHELPERS_LOG_LEVEL", "INFO").upper(),
        help="Log level",
    )
    p.add_argument(
        "--log-json",
        action="store_true",
        default=os.environ.get("BUILDHELPERS_LOG_JSON") == "1",
        help="Emit JSON log lines (or set BUILDHELPERS_LOG_JSON=1)",
    )
    sub = p.add_subparsers(dest="command", required=True)

    d = sub.add_parser("discover", help="List buildable or testable package directories")
    d.add_argument("kind", choices=["build", "test"])
    d.add_argument("--source-dir", default=None, help="Directory to search for packages")
    d.set_defaults(func=discover_cmd, packages=None)

    b = sub.add_parser("build", help="Compile every package (stops at the first failure)")
    _add_package_args(b)
    b.add_argument("--bin-dir", default=None, help="Output directory for executables")
    b.add_argument("--ldflags", default=None, help="Value passed via -ldflags (may use version placeholders)")
    b.set_defaults(func=build_cmd)

    t = sub.add_parser("test", help="Run the tests of every package")
    _add_package_args(t)
    _add_log_args(t)
    t.add_argument("--fail-fast", action="store_true", help="Stop at the first failing package")
    t.add_argument("--junit", action="store_true", help="Convert the log to JUnit XML afterwards")
    t.add_argument("--xml", default=None, help="JUnit XML output path")
    t.set_defaults(func=test_cmd)

    c = sub.add_parser("cover", help="Measure test coverage (stops at the first failure)")
    _add_package_args(c)
    _add_log_args(c)
    c.set_defaults(func=cover_cmd)

    cv = sub.add_parser("convert", help="Convert a test log into JUnit XML")
    cv.add_argument("--log", default=None, help="Test log to convert")
    cv.add_argument("--xml", default=None, help="JUnit XML output path")
    cv.add_argument("--work-dir", default=".", help="Directory the converter runs in")
    cv.set_defaults(func=convert_cmd)

    ic = sub.add_parser("install-converter", help="Install the test log converter")
    ic.add_argument("--work-dir", default=".", help="Directory the installation runs in")
    ic.set_defaults(func=install_converter_cmd)

    z = sub.add_parser("zip", help="Zip artifact directories into one archive")
    z.add_argument("sources", nargs="*", help="Directories to pack (default: config artifacts)")
    z.add_argument("-o", "--output", default=None, help="Archive path (may use version placeholders)")
    z.add_argument("--reproducible", action="store_true", help="Pin entry timestamps for byte-identical output")
    z.set_defaults(func=zip_cmd)

    v = sub.add_parser("version", help="Print version, git height and git hash")
    v.add_argument("--version-file", default=None, help="File whose last change starts the height count")
    v.add_argument("--work-dir", default=".", help="Repository directory")
    v.add_argument("--allow-unknown", action="store_true", help=f"Print height {UNKNOWN_HEIGHT} instead of failing")
    v.set_defaults(func=version_cmd)

    o = sub.add_parser("os-release", help="Print the Linux distribution id")
    o.add_argument("--file", default="/etc/os-release", help="os-release file to read")
    o.set_defaults(func=os_release_cmd)

    cl = sub.add_parser("clean", help="Remove the bin and log directories (plus extra paths)")
    cl.add_argument("paths", nargs="*", help="Additional paths to remove")
    cl.set_defaults(func=clean_cmd)

    r = sub.add_parser("release", help="Publish archives as assets of the v<version> GitHub release")
    r.add_argument("assets", nargs="*", help="Files to upload (default: the configured archive)")
    r.add_argument("--github-owner", default=None, help="GitHub owner (user or org)")
    r.add_argument("--github-repo", default=None, help="GitHub repository name")
    r.add_argument("--github-token", default=None, help="GitHub token (or set env GITHUB_TOKEN)")
    r.set_defaults(func=release_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_output=bool(args.log_json))
    bind_context(command=args.command)
    try:
        config = load_config(args.config)
        return int(args.func(args, config))
    except BuildHelpersError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
