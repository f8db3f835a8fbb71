"""Tests for loading the site configuration file."""

from __future__ import annotations

import typing as typ

import pytest

from sitepress.config import (
    BuildContext,
    SiteConfigError,
    SiteMetadata,
    load_build_context,
    normalize_base_path,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

CONFIG = """\
articles_dir: content
output_dir: public
layout_dir: layouts
assets_dir: static
base_path: docs
workers: 3
site:
  site_name: Example Docs
  site_url: https://example.com
  description: Reference material
  stylesheets:
    - site.css
    - print.css
  favicon: favicon.svg
  icons:
    192: icon-192.png
"""


def _write_config(tmp_path: Path, text: str = CONFIG) -> Path:
    path = tmp_path / "site.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_resolves_directories_against_config_file(tmp_path: Path) -> None:
    """Relative directories are anchored at the configuration file."""
    context = load_build_context(_write_config(tmp_path))

    assert context.articles_dir == tmp_path / "content"
    assert context.output_dir == tmp_path / "public"
    assert context.layout_dir == tmp_path / "layouts"
    assert context.assets_dir == tmp_path / "static"
    assert context.base_path == "/docs/"
    assert context.workers == 3
    assert not context.dev
    assert context.layout_mode == "override"


def test_site_metadata_parsed(tmp_path: Path) -> None:
    """The ``site`` mapping becomes SiteMetadata."""
    site = load_build_context(_write_config(tmp_path)).site

    assert site.site_name == "Example Docs"
    assert site.stylesheets == ("site.css", "print.css")
    assert site.favicon == "favicon.svg"
    assert site.icons == {"192": "icon-192.png"}
    assert site.absolute_url("/docs/a.html") == "https://example.com/docs/a.html"


def test_overrides_take_precedence(tmp_path: Path) -> None:
    """Keyword overrides win; ``None`` overrides are ignored."""
    context = load_build_context(
        _write_config(tmp_path), dev=True, base_path="/", workers=None
    )

    assert context.dev
    assert context.base_path == "/"
    assert context.workers == 3


def test_missing_file_raises(tmp_path: Path) -> None:
    """A missing configuration file is reported clearly."""
    with pytest.raises(FileNotFoundError, match="not found"):
        load_build_context(tmp_path / "absent.yaml")


def test_missing_required_directory(tmp_path: Path) -> None:
    """Every root directory must be configured."""
    path = _write_config(tmp_path, "articles_dir: content\noutput_dir: public\n")

    with pytest.raises(SiteConfigError, match="layout_dir"):
        load_build_context(path)


def test_non_mapping_document_rejected(tmp_path: Path) -> None:
    """The document must be a mapping."""
    with pytest.raises(TypeError, match="mapping"):
        load_build_context(_write_config(tmp_path, "- a\n- b\n"))


@pytest.mark.parametrize(
    ("extra", "match"),
    [
        ("workers: 0\n", "at least 1"),
        ("workers: many\n", "integer"),
        ("dev: maybe\n", "boolean"),
        ("layout_mode: stacked\n", "layout_mode"),
        ("site: [a]\n", "mapping"),
    ],
)
def test_invalid_values_rejected(tmp_path: Path, extra: str, match: str) -> None:
    """Malformed settings raise SiteConfigError naming the field."""
    text = "\n".join(line for line in CONFIG.splitlines() if "workers" not in line)
    if extra.startswith("site"):
        text = text.split("site:")[0]
    with pytest.raises(SiteConfigError, match=match):
        load_build_context(_write_config(tmp_path, text + "\n" + extra))


def test_string_booleans_accepted(tmp_path: Path) -> None:
    """Environment-style strings are accepted for ``dev``."""
    context = load_build_context(_write_config(tmp_path, CONFIG + "dev: 'yes'\n"))

    assert context.dev


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, "/"), ("", "/"), ("/", "/"), ("docs", "/docs/"), ("/a/b//", "/a/b/")],
)
def test_normalize_base_path(raw: str | None, expected: str) -> None:
    """Base paths always start and end with a single slash."""
    assert normalize_base_path(raw) == expected


def test_context_replace_keeps_validation(tmp_path: Path) -> None:
    """``replace`` returns a validated copy."""
    context = BuildContext(
        articles_dir=tmp_path,
        output_dir=tmp_path / "_site",
        layout_dir=tmp_path,
        assets_dir=tmp_path,
        site=SiteMetadata(),
    )

    assert context.replace(base_path="x").base_path == "/x/"
    with pytest.raises(SiteConfigError):
        context.replace(workers=0)
