"""
orchestrate.py

Responsibility: Build, test and cover a list of packages, one after another.

Failure policies:
- `build_folders`: fail fast, build output goes to the caller's streams.
- `run_test_folders`: collect all, every package runs and all failures are returned.
- `run_test_folders_early_exit` / `cover_test_folders`: fail fast.

Test and cover output of every package is written to one shared log file
that is truncated at the start of the call. If the log cannot be prepared
no package is attempted.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from buildhelpers.errors import BuildHelpersError, CommandError
from buildhelpers.fsutil import FilesystemError, ensure_directory_exists
from buildhelpers.platforms import Platform, resolve_platform
from buildhelpers.process import run_command

logger = logging.getLogger(__name__)

DEFAULT_TOOLCHAIN = "go"


class OrchestrationError(BuildHelpersError):
    pass


class PackageError(OrchestrationError):
    """One package failed to build, test or cover."""

    def __init__(self, action: str, package: str | Path, cause: CommandError) -> None:
        self.action = action
        self.package = str(package)
        self.returncode = cause.returncode
        super().__init__(f"Error during {action} of package '{package}': {cause}")


class LogSink:
    """
    Shared log file for one orchestration call.

    Use as a context manager; the file is created (or truncated) on entry and
    closed on every exit path.
    """

    def __init__(self, log_dir: str | Path, file_name: str) -> None:
        self.path = Path(log_dir) / file_name
        self._handle: BinaryIO | None = None

    @property
    def handle(self) -> BinaryIO:
        if self._handle is None:
            raise OrchestrationError(f"Log file {self.path} is not open")
        return self._handle

    def open(self) -> LogSink:
        if self._handle is None:
            try:
                ensure_directory_exists(self.path.parent)
                self._handle = open(self.path, "wb")
            except (OSError, FilesystemError) as e:
                raise OrchestrationError(f"Cannot prepare log file {self.path}: {e}") from e
        return self

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> LogSink:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def _run_package(
    action: str,
    package: str | Path,
    cmd: list[str],
    *,
    output: BinaryIO | None = None,
) -> None:
    try:
        run_command(cmd, cwd=package, stdout=output, stderr=output)
    except CommandError as e:
        err = PackageError(action, package, e)
        logger.error("%s", err)
        raise err from e


def build_folders(
    packages: Iterable[str | Path],
    bin_dir: str | Path,
    ldflags: str = "",
    *,
    toolchain: str = DEFAULT_TOOLCHAIN,
    platform: Platform | None = None,
) -> list[Path]:
    """
    Compile each package into `<bin_dir>/<package dir name>[.exe]`.

    `ldflags` is passed via `-ldflags` and left out entirely when empty.
    Stops at the first failing package. Returns the executables built.
    """
    plat = platform or resolve_platform()
    try:
        out_dir = ensure_directory_exists(bin_dir)
    except FilesystemError as e:
        raise OrchestrationError(f"Cannot prepare output directory {bin_dir}: {e}") from e

    built: list[Path] = []
    for package in packages:
        name = os.path.basename(os.path.abspath(package))
        # Absolute, since the compiler runs inside the package directory.
        output = Path(os.path.abspath(out_dir / plat.executable_name(name)))
        logger.info("Compile package '%s' to '%s'", package, output)

        cmd = [toolchain, "build", "-o", str(output), "-v"]
        if ldflags:
            cmd += ["-ldflags", ldflags]
        _run_package("build", package, cmd)
        built.append(output)
    return built


def _test_packages(
    action: str,
    packages: Iterable[str | Path],
    sink: LogSink,
    args: list[str],
    *,
    toolchain: str,
    fail_fast: bool,
) -> list[OrchestrationError]:
    failures: list[OrchestrationError] = []
    for package in packages:
        logger.info("Run %s for package '%s', logging to '%s'", action, package, sink.path)
        try:
            _run_package(action, package, [toolchain, *args], output=sink.handle)
        except PackageError as e:
            if fail_fast:
                raise
            failures.append(e)
    return failures


def run_test_folders(
    packages: Iterable[str | Path],
    log_dir: str | Path,
    log_file_name: str,
    *,
    toolchain: str = DEFAULT_TOOLCHAIN,
    platform: Platform | None = None,
) -> list[OrchestrationError]:
    """
    Test every package, even after failures. Returns all failures (may be empty).

    Uses the race detector where the platform supports it.
    """
    plat = platform or resolve_platform()
    sink = LogSink(log_dir, log_file_name)
    try:
        sink.open()
    except OrchestrationError as e:
        return [e]
    with sink:
        return _test_packages("test", packages, sink, plat.test_args(), toolchain=toolchain, fail_fast=False)


def run_test_folders_early_exit(
    packages: Iterable[str | Path],
    log_dir: str | Path,
    log_file_name: str,
    *,
    toolchain: str = DEFAULT_TOOLCHAIN,
    platform: Platform | None = None,
) -> None:
    """
    Test packages in order and raise PackageError at the first failure.
    """
    plat = platform or resolve_platform()
    with LogSink(log_dir, log_file_name) as sink:
        _test_packages("test", packages, sink, plat.test_args(), toolchain=toolchain, fail_fast=True)


def cover_test_folders(
    packages: Iterable[str | Path],
    log_dir: str | Path,
    log_file_name: str,
    *,
    toolchain: str = DEFAULT_TOOLCHAIN,
    platform: Platform | None = None,
) -> None:
    """
    Measure test coverage package by package; raise at the first failure.
    """
    plat = platform or resolve_platform()
    with LogSink(log_dir, log_file_name) as sink:
        _test_packages("coverage measurement", packages, sink, plat.cover_args(), toolchain=toolchain, fail_fast=True)
