"""Tests for content discovery and output path derivation."""

from __future__ import annotations

import typing as typ

import pytest

from sitepress.content import (
    derive_output_path,
    derive_url,
    discover_sources,
    load_source,
    load_sources,
)
from sitepress.errors import FrontmatterError

if typ.TYPE_CHECKING:
    from conftest import SiteTree


@pytest.mark.parametrize(
    ("relative", "output", "url"),
    [
        ("index.md", "index.html", ""),
        ("about.md", "about.html", "about.html"),
        ("guide/index.jinja", "guide/index.html", "guide/"),
        (
            "guide/advanced/tuning.md",
            "guide/advanced/tuning.html",
            "guide/advanced/tuning.html",
        ),
    ],
)
def test_output_path_and_url_derivation(relative: str, output: str, url: str) -> None:
    """Output paths swap the suffix; URLs collapse index files."""
    assert derive_output_path(relative) == output
    assert derive_url(output) == url


def test_discover_sources_skips_partials_and_hidden(site_tree: SiteTree) -> None:
    """Underscore and dot prefixed files and directories are not content."""
    site_tree.write("articles/_partial.md", "ignored")
    site_tree.write("articles/_drafts/wip.md", "ignored")
    site_tree.write("articles/.hidden.md", "ignored")
    site_tree.write("articles/notes.txt", "ignored")
    site_tree.page("widgets.jinja", "Widgets")

    found = [
        path.relative_to(site_tree.articles).as_posix()
        for path in discover_sources(site_tree.articles)
    ]

    assert found == ["guide/intro.md", "index.md", "widgets.jinja"]


def test_load_source_populates_derived_fields(site_tree: SiteTree) -> None:
    """A loaded source carries validated metadata and derived locations."""
    source = load_source(site_tree.articles / "guide" / "intro.md", site_tree.articles)

    assert source.relative_path == "guide/intro.md"
    assert source.directory == "guide"
    assert source.slug == "guide/intro"
    assert source.output_path == "guide/intro.html"
    assert source.href("/docs/") == "/docs/guide/intro.html"
    assert source.frontmatter.title == "Intro"
    assert source.body.startswith("## Setup")
    assert not source.is_template


def test_load_sources_collects_per_file_errors(site_tree: SiteTree) -> None:
    """One malformed file does not prevent the others from loading."""
    broken = site_tree.write("articles/broken.md", "---\ntitle: Oops\n")

    sources, errors = load_sources(
        [broken, site_tree.articles / "index.md"], site_tree.articles
    )

    assert [source.relative_path for source in sources] == ["index.md"]
    assert len(errors) == 1
    assert isinstance(errors[0], FrontmatterError)
    assert errors[0].path == "broken.md"
