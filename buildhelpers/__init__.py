"""
buildhelpers package

Helpers for CI build scripts of Go repositories.

Key responsibilities are split across modules:
- `discovery.py`: find buildable (`go.mod`) and testable (`*_test.go`) package directories
- `orchestrate.py`: build / test / cover package lists with fail-fast or collect-all policies
- `archive.py`: deterministic zip archives of artifact directories
- `version.py`: git hash and git height based versions
- `converter.py`: JUnit XML conversion of test logs
- `github_client.py`: GitHub release publishing
- `cli.py`: CLI entrypoint
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
