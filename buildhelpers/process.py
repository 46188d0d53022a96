"""
process.py

Responsibility: The single place that starts external commands.

Commands inherit the caller's environment and run in an explicit working
directory. Output is either routed to the given handles (or the calling
process's own streams) or captured and returned.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import IO

from buildhelpers.errors import CommandError

logger = logging.getLogger(__name__)


def _describe(cmd: Sequence[str]) -> str:
    return " ".join(str(part) for part in cmd)


def run_command(
    cmd: Sequence[str],
    *,
    cwd: str | Path,
    stdout: IO[bytes] | None = None,
    stderr: IO[bytes] | None = None,
) -> None:
    """
    Run a command to completion, raising a CommandError on failure.

    `stdout`/`stderr` default to the calling process's streams.
    """
    argv = [str(part) for part in cmd]
    logger.info("Run in %s: %s", cwd, _describe(argv))
    try:
        subprocess.run(argv, cwd=str(cwd), stdout=stdout, stderr=stderr, check=True)
    except subprocess.CalledProcessError as e:
        raise CommandError(argv, cwd, e.returncode) from e
    except OSError as e:
        raise CommandError(argv, cwd, None, e.strerror or str(e)) from e


def capture_output(cmd: Sequence[str], *, cwd: str | Path) -> str:
    """
    Run a command and return its standard output as text.

    Standard error goes to the calling process's stream.
    """
    argv = [str(part) for part in cmd]
    logger.debug("Run in %s: %s", cwd, _describe(argv))
    try:
        proc = subprocess.run(argv, cwd=str(cwd), stdout=subprocess.PIPE, check=True, text=True)
    except subprocess.CalledProcessError as e:
        raise CommandError(argv, cwd, e.returncode) from e
    except OSError as e:
        raise CommandError(argv, cwd, None, e.strerror or str(e)) from e
    return proc.stdout
