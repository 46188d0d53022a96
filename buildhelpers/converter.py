"""
converter.py

Responsibility: Turn a test log into a JUnit XML report with go2xunit, and
install that converter.

Both functions only start the converter; its failures propagate unchanged
as CommandError.
"""

from __future__ import annotations

import logging
from pathlib import Path

from buildhelpers.errors import CommandError
from buildhelpers.fsutil import ensure_directory_exists
from buildhelpers.process import run_command

logger = logging.getLogger(__name__)

DEFAULT_CONVERTER = "github.com/tebeka/go2xunit"
DEFAULT_CONVERTER_VERSION = "v1.4.10"


def convert_test_results(
    log_path: str | Path,
    xml_path: str | Path,
    work_dir: str | Path,
    *,
    toolchain: str = "go",
    converter: str = DEFAULT_CONVERTER,
) -> None:
    ensure_directory_exists(Path(xml_path).parent)
    logger.info("Convert the test results %s to %s", log_path, xml_path)
    try:
        run_command([toolchain, "run", converter, "-input", str(log_path), "-output", str(xml_path)], cwd=work_dir)
    except CommandError as e:
        logger.error("Error during test result conversion: %s", e)
        raise


def install_test_converter(
    work_dir: str | Path,
    *,
    toolchain: str = "go",
    converter: str = DEFAULT_CONVERTER,
    version: str = DEFAULT_CONVERTER_VERSION,
) -> None:
    run_command([toolchain, "install", "-v", f"{converter}@{version}"], cwd=work_dir)
