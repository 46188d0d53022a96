"""
templating.py

Responsibility: Render configuration strings that embed version placeholders.

Link flags and archive names may reference `{{ version }}`, `{{ height }}`
and `{{ git_hash }}`. Strings without Jinja2 markers are returned untouched,
and undefined names are errors rather than empty output.
"""

from __future__ import annotations

from typing import Any

import jinja2
from jinja2 import Environment, StrictUndefined

from buildhelpers.errors import BuildHelpersError
from buildhelpers.version import VersionInfo


class TemplateError(BuildHelpersError):
    pass


_env = Environment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def has_placeholders(text: str) -> bool:
    return ("{{" in text) or ("{%" in text) or ("{#" in text)


def version_context(info: VersionInfo) -> dict[str, Any]:
    return {"version": info.version, "height": info.height, "git_hash": info.git_hash}


def render_string(text: str, context: dict[str, Any]) -> str:
    if not has_placeholders(text):
        return text
    try:
        return _env.from_string(text).render(**context)
    except jinja2.TemplateError as e:
        raise TemplateError(f"Failed rendering {text!r}: {e}") from e
