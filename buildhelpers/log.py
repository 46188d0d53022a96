"""
log.py

Responsibility: Route the library's stdlib log records through structlog.

Library modules only call `logging.getLogger(__name__)`; the CLI decides
once, at start-up, how records are rendered: readable console lines for a
terminal, one JSON object per line for CI log collectors.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _renderer(json_output: bool, stream: TextIO) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def configure_logging(level: str = "INFO", *, json_output: bool = False, stream: TextIO | None = None) -> None:
    """
    Install a single structlog-formatted handler on the root logger.

    Calling it again replaces the previous handler.
    """
    out = stream or sys.stderr
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    handler = logging.StreamHandler(out)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_output, out),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())


def bind_context(**kwargs: object) -> None:
    """Attach key-value pairs (e.g. the running subcommand) to every log line."""
    structlog.contextvars.bind_contextvars(**kwargs)
