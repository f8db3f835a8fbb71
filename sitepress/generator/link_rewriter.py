"""Helpers for rewriting links between content sources to output URLs."""

from __future__ import annotations

import posixpath
import typing as typ
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any


def _build_link_rewriter(
    source_path: str, hrefs: cabc.Mapping[str, str]
) -> Extension | None:
    """Return a RelativeLinkExtension for the page at ``source_path``."""
    if not hrefs:
        return None
    return RelativeLinkExtension(posixpath.dirname(source_path), hrefs)


class RelativeLinkExtension(Extension):
    """Rewrite relative links to other content sources into page URLs.

    Authors link between pages the way they appear on disk
    (``[setup](../guide/intro.md#setup)``); this extension swaps every such
    target for the public URL of the rendered page
    (``/guide/intro.html#setup``). Links to anything that is not a known
    content source are left untouched.
    """

    def __init__(self, base_dir: str, hrefs: cabc.Mapping[str, str]) -> None:
        super().__init__()
        self.base_dir = base_dir
        self.hrefs = hrefs

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the relative-link treeprocessor on the Markdown instance."""
        processor = RelativeLinkTreeprocessor(md, self.base_dir, self.hrefs)
        md.treeprocessors.register(processor, "sitepress_relative_links", 15)


class RelativeLinkTreeprocessor(Treeprocessor):
    """Rewrite anchors that point at sibling content files."""

    def __init__(
        self, md: Markdown, base_dir: str, hrefs: cabc.Mapping[str, str]
    ) -> None:
        super().__init__(md)
        self.base_dir = base_dir
        self.hrefs = hrefs

    def run(self, root: Element) -> None:
        """Point every anchor at a known content source to its page URL."""
        for anchor in root.iter("a"):
            rewritten = self._rewrite(anchor.get("href"))
            if rewritten is not None:
                anchor.set("href", rewritten)

    def _rewrite(self, target: str | None) -> str | None:
        """Return the page URL for a relative content link, if it is one."""
        if not target:
            return None
        parsed = urlsplit(target)
        if parsed.scheme or parsed.netloc or not parsed.path:
            return None
        if parsed.path.startswith("/"):
            return None

        key = posixpath.normpath(posixpath.join(self.base_dir, parsed.path))
        href = self.hrefs.get(key)
        if href is None:
            return None
        suffix = f"?{parsed.query}" if parsed.query else ""
        if parsed.fragment:
            suffix = f"{suffix}#{parsed.fragment}"
        return href + suffix


__all__ = [
    "RelativeLinkExtension",
    "RelativeLinkTreeprocessor",
    "_build_link_rewriter",
]
