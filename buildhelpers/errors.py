"""
errors.py

Responsibility: Exception types shared across buildhelpers.

Every module raises a subclass of `BuildHelpersError`, so CI scripts can catch
one type at the boundary. Module-specific errors live next to the code that
raises them; only the cross-cutting ones are defined here.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class BuildHelpersError(RuntimeError):
    pass


class CommandError(BuildHelpersError):
    """An external command could not be started or exited non-zero."""

    def __init__(
        self,
        cmd: Sequence[str],
        cwd: str | Path,
        returncode: int | None,
        detail: str = "",
    ) -> None:
        self.cmd = [str(part) for part in cmd]
        self.cwd = str(cwd)
        self.returncode = returncode
        if returncode is None:
            message = f"Command could not be started in {self.cwd}: {' '.join(self.cmd)}"
        else:
            message = f"Command failed with exit code {returncode} in {self.cwd}: {' '.join(self.cmd)}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


def os_not_supported_message(os_name: str, method: str) -> str:
    return f'Error: The OS "{os_name}" is not supported by the "{method}" method'


class OsNotSupportedError(BuildHelpersError):
    """Raised when an operation is invoked on a platform it does not support."""

    def __init__(self, os_name: str, method: str) -> None:
        self.os_name = os_name
        self.method = method
        super().__init__(os_not_supported_message(os_name, method))
