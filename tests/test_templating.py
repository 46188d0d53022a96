"""Tests for version placeholder rendering."""

from __future__ import annotations

import pytest

from buildhelpers.templating import TemplateError, has_placeholders, render_string, version_context
from buildhelpers.version import VersionInfo


def test_plain_text_is_untouched() -> None:
    assert not has_placeholders("-s -w")
    assert render_string("-s -w", {}) == "-s -w"


def test_render_version_context() -> None:
    ctx = version_context(VersionInfo(version="1.2.7", height=7, git_hash="v1.2-7-gabc123"))
    text = "-X main.version={{ version }} -X main.hash={{ git_hash }}"
    assert render_string(text, ctx) == "-X main.version=1.2.7 -X main.hash=v1.2-7-gabc123"
    assert render_string("dist/app-{{ version }}.zip", ctx) == "dist/app-1.2.7.zip"


def test_undefined_placeholder_is_an_error() -> None:
    with pytest.raises(TemplateError):
        render_string("{{ nope }}", {})


def test_syntax_error_is_an_error() -> None:
    with pytest.raises(TemplateError):
        render_string("{{ version ", {"version": "1"})
