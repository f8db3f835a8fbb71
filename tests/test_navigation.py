"""Tests for the navigation model and per-page currentness."""

from __future__ import annotations

from pathlib import Path

import pytest

from sitepress.content import ContentSource, derive_output_path, derive_url
from sitepress.frontmatter import validate
from sitepress.navigation import build_navigation, is_current


def _source(relative: str, title: str, **fields: object) -> ContentSource:
    output = derive_output_path(relative)
    return ContentSource(
        absolute_path=Path("/content") / relative,
        relative_path=relative,
        raw_text="",
        body="",
        frontmatter=validate({"title": title, **fields}),
        output_path=output,
        url=derive_url(output),
    )


@pytest.fixture
def sources() -> list[ContentSource]:
    """Return a mixed tree of top-level pages and nested guides."""
    return [
        _source("index.md", "Home", order=1),
        _source("about.md", "About"),
        _source("guide/intro.md", "Intro", order=1),
        _source("guide/setup.md", "Setup", order=2),
        _source("guide/advanced/tuning.md", "Tuning"),
        _source("hidden.md", "Hidden", nav=False),
    ]


def test_header_holds_top_level_pages_and_directory_landings(
    sources: list[ContentSource],
) -> None:
    """Top-level pages and one landing per top-level directory feed the header."""
    model = build_navigation(sources, "/")

    header = model.section("header")
    assert header is not None
    assert [entry.title for entry in header.entries] == ["Home", "Intro", "About"]
    assert [entry.href for entry in header.entries] == [
        "/",
        "/guide/intro.html",
        "/about.html",
    ]


def test_nested_pages_group_by_parent_directory(sources: list[ContentSource]) -> None:
    """Remaining pages land in sections named after their parent directory."""
    model = build_navigation(sources, "/")

    assert [section.name for section in model.sections] == [
        "header",
        "guide",
        "guide/advanced",
    ]
    guide = model.section("guide")
    assert guide is not None
    assert [entry.title for entry in guide.entries] == ["Setup"]


def test_index_page_is_preferred_landing() -> None:
    """A directory's index page is promoted even when another sorts first."""
    model = build_navigation(
        [
            _source("guide/alpha.md", "Alpha", order=1),
            _source("guide/index.md", "Guide"),
        ],
        "/",
    )

    header = model.section("header")
    guide = model.section("guide")
    assert header is not None
    assert guide is not None
    assert [entry.href for entry in header.entries] == ["/guide/"]
    assert [entry.title for entry in guide.entries] == ["Alpha"]


def test_explicit_order_precedes_title_order() -> None:
    """Ordered items come first ascending; the rest sort by title then path."""
    model = build_navigation(
        [
            _source("docs/zeta.md", "zeta"),
            _source("docs/b.md", "Beta", order=2),
            _source("docs/a.md", "Alpha"),
            _source("docs/c.md", "Gamma", order=1),
            _source("docs/index.md", "Docs"),
        ],
        "/",
    )

    docs = model.section("docs")
    assert docs is not None
    assert [entry.title for entry in docs.entries] == ["Gamma", "Beta", "Alpha", "zeta"]


def test_nav_group_and_nav_title_override_defaults() -> None:
    """``nav-group`` moves a page; ``nav-title`` relabels it."""
    model = build_navigation(
        [
            _source("index.md", "Home"),
            _source("guide/faq.md", "Frequently asked", **{"nav-group": "support"}),
            _source("contact.md", "Contact us", **{"nav-title": "Contact"}),
        ],
        "/",
    )

    support = model.section("support")
    header = model.section("header")
    assert support is not None
    assert header is not None
    assert [entry.title for entry in support.entries] == ["Frequently asked"]
    assert [entry.title for entry in header.entries] == ["Contact", "Home"]
    assert model.section("guide") is None


def test_hrefs_carry_base_path(sources: list[ContentSource]) -> None:
    """Every href is the derived URL under the base path."""
    model = build_navigation(sources, "/docs/")

    assert {entry.href for entry in model.entries()} >= {"/docs/", "/docs/about.html"}


def test_for_page_marks_exactly_one_current_item(sources: list[ContentSource]) -> None:
    """Each navigable page sees exactly one current item: itself."""
    model = build_navigation(sources, "/")

    for source in sources:
        if not source.frontmatter.nav:
            continue
        view = model.for_page(source.href("/"))
        current = [item for items in view.values() for item in items if item.is_current]
        hrefs = [item.href for item in current]
        assert hrefs == [source.href("/")], source.relative_path


def test_for_page_leaves_model_untouched(sources: list[ContentSource]) -> None:
    """Projections are read-only and do not leak between pages."""
    model = build_navigation(sources, "/")

    home = model.for_page("/")
    about = model.for_page("/about.html")

    assert home["header"][0].is_current
    assert not about["header"][0].is_current
    with pytest.raises(TypeError):
        home["extra"] = ()  # type: ignore[index]


def test_pages_outside_navigation_have_no_current_item(
    sources: list[ContentSource],
) -> None:
    """A page excluded from navigation matches no item."""
    view = build_navigation(sources, "/").for_page("/hidden.html")

    assert not any(item.is_current for items in view.values() for item in items)


def test_is_current_compares_href() -> None:
    """``is_current`` is a pure href comparison."""
    entry = build_navigation([_source("about.md", "About")], "/").section("header")
    assert entry is not None
    assert is_current(entry.entries[0], "/about.html")
    assert not is_current(entry.entries[0], "/")


def test_empty_tree_still_has_header() -> None:
    """The header section exists even with nothing to list."""
    model = build_navigation([], "/")

    assert [section.name for section in model.sections] == ["header"]
