"""Shared fixtures for sitepress tests.

The ``site_tree`` fixture lays out a small but complete site under
``tmp_path``: a home page, one guide article, a root layout and a
``guide/``-scoped layout that both render the header navigation, and one
stylesheet asset. Tests add or edit files through :meth:`SiteTree.write` and
build a :class:`~sitepress.config.BuildContext` with :meth:`SiteTree.context`.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from sitepress.config import BuildContext, SiteMetadata

NAV_MARKUP = """<nav class="header">
{% for item in navigation["header"] %}
<a href="{{ item.href }}"{% if item.is_current %} aria-current="page"{% endif %}>{{ item.title }}</a>
{% endfor %}
</nav>
"""

ROOT_LAYOUT = NAV_MARKUP + '<main class="root-layout">{{ article_html }}</main>\n'
GUIDE_LAYOUT = NAV_MARKUP + '<main class="guide-layout">{{ article_html }}</main>\n'


@dc.dataclass
class SiteTree:
    """Filesystem layout of a test site rooted at ``root``."""

    root: Path

    @property
    def articles(self) -> Path:
        return self.root / "articles"

    @property
    def layouts(self) -> Path:
        return self.root / "layouts"

    @property
    def assets(self) -> Path:
        return self.root / "assets"

    @property
    def output(self) -> Path:
        return self.root / "_site"

    def write(self, relative: str, text: str) -> Path:
        """Write ``text`` to ``relative`` under the site root."""
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def page(
        self, relative: str, title: str | None, body: str = "", **fields: object
    ) -> Path:
        """Write a content page with front-matter under ``articles/``."""
        lines = ["---"]
        if title is not None:
            lines.append(f"title: {title}")
        lines.extend(
            f"{key.replace('_', '-')}: {value}" for key, value in fields.items()
        )
        lines.append("---")
        return self.write(f"articles/{relative}", "\n".join(lines) + "\n" + body)

    def context(self, **overrides: typ.Any) -> BuildContext:
        """Return a BuildContext for the tree with ``overrides`` applied."""
        values: dict[str, typ.Any] = {
            "articles_dir": self.articles,
            "output_dir": self.output,
            "layout_dir": self.layouts,
            "assets_dir": self.assets,
            "site": SiteMetadata(
                site_name="Example",
                site_url="https://example.com",
                description="An example site",
                stylesheets=("site.css",),
            ),
            "workers": 2,
        }
        values.update(overrides)
        return BuildContext(**values)

    def read(self, relative: str) -> str:
        """Return the text of an output file."""
        return (self.output / relative).read_text(encoding="utf-8")

    def soup(self, relative: str) -> BeautifulSoup:
        """Return an output HTML file parsed with BeautifulSoup."""
        return BeautifulSoup(self.read(relative), "html.parser")


@pytest.fixture
def site_tree(tmp_path: Path) -> SiteTree:
    """Return a populated site tree (home page, guide article, two layouts)."""
    tree = SiteTree(tmp_path)
    tree.page(
        "index.md", "Home", "# Welcome\n\nRead the [intro](guide/intro.md#setup).\n"
    )
    tree.page("guide/intro.md", "Intro", "## Setup\n\nInstall it.\n")
    tree.write("layouts/_layout.jinja", ROOT_LAYOUT)
    tree.write("layouts/guide/_layout.jinja", GUIDE_LAYOUT)
    tree.write("assets/site.css", "body { margin: 0; }\n")
    return tree


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}
