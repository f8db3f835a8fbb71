"""Markdown-to-HTML conversion for page bodies.

Pages written in markdown pass through :class:`HtmlContentRenderer` after
their ``{{assets}}/<name>`` placeholders have been resolved. Fenced code is
highlighted by Pygments via the ``codehilite`` extension, and each highlighted
block is tagged with a ``data-language`` attribute so layouts can label it.
"""

from __future__ import annotations

import re
import typing as typ
from html import escape

from markdown import Markdown
from pygments.formatters.html import HtmlFormatter

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from markdown.extensions import Extension
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

CODE_CSS_CLASS = "codehilite"
MARKDOWN_EXTENSIONS = ("fenced_code", "codehilite", "tables", "sane_lists", "toc")
FENCE_OPEN_PATTERN = re.compile(
    r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*(?P<lang>[\w+#.-]+)?[^\n]*$", re.MULTILINE
)
HIGHLIGHT_DIV = f'<div class="{CODE_CSS_CLASS}">'
ASSET_PLACEHOLDER_PATTERN = re.compile(r"\{\{assets\}\}/([\w\-./]+)")


class HtmlContentRenderer:
    """Convert markdown page bodies to HTML with highlighted code."""

    def __init__(self, pygments_style: str = "monokai") -> None:
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass=CODE_CSS_CLASS)

    @property
    def stylesheet(self) -> str:
        """Return the Pygments CSS published as ``codehilite.css``."""
        return self._formatter.get_style_defs(f".{CODE_CSS_CLASS}")

    def markdown(self, text: str, *, link_extension: Extension | None = None) -> str:
        """Render ``text`` to an HTML fragment.

        Parameters
        ----------
        text : str
            Markdown body with the front-matter already removed.
        link_extension : Extension, optional
            Per-page extension rewriting links between content sources.

        Returns
        -------
        str
            The HTML fragment, or an empty string for a blank body.
        """
        if not text.strip():
            return ""
        extensions: list[Extension | str] = list(MARKDOWN_EXTENSIONS)
        if link_extension is not None:
            extensions.append(link_extension)
        converter = Markdown(
            extensions=extensions,
            extension_configs={
                "codehilite": {
                    "css_class": CODE_CSS_CLASS,
                    "guess_lang": False,
                    "linenums": False,
                    "pygments_style": self.pygments_style,
                }
            },
        )
        return label_code_blocks(converter.convert(text), fence_languages(text))


def fence_languages(text: str) -> list[str]:
    """Return the language of each fenced block in ``text``, in order.

    Only opening fences are counted. A bare fence of the same character, at
    least as long as the opener, closes the block.

    Examples
    --------
    >>> fence_languages("```python\\nx = 1\\n```\\n\\n~~~\\nplain\\n~~~\\n")
    ['python', 'text']
    """
    languages: list[str] = []
    open_fence: str | None = None
    for match in FENCE_OPEN_PATTERN.finditer(text):
        fence = match.group("fence")
        if open_fence is None:
            open_fence = fence
            languages.append(match.group("lang") or "text")
        elif _closes(match, open_fence):
            open_fence = None
    return languages


def _closes(match: re.Match[str], open_fence: str) -> bool:
    fence = match.group("fence")
    return (
        match.group(0).strip() == fence
        and fence[0] == open_fence[0]
        and len(fence) >= len(open_fence)
    )


def label_code_blocks(html: str, languages: cabc.Sequence[str]) -> str:
    """Add ``data-language`` to the first ``len(languages)`` highlighted blocks."""
    if not languages:
        return html
    remaining = iter(languages)

    def _label(_match: re.Match[str]) -> str:
        language = escape(next(remaining, "text"), quote=True)
        return f'<div class="{CODE_CSS_CLASS}" data-language="{language}">'

    return re.sub(re.escape(HIGHLIGHT_DIV), _label, html, count=len(languages))


def replace_asset_placeholders(text: str, asset: cabc.Callable[[str], str]) -> str:
    """Replace ``{{assets}}/<name>`` placeholders with resolved asset URLs.

    Query strings and fragments are not part of the placeholder; an unknown
    name propagates the lookup's ``AssetNotFoundError``.

    Examples
    --------
    >>> replace_asset_placeholders("![logo]({{assets}}/logo.svg)", lambda n: f"/a/{n}")
    '![logo](/a/logo.svg)'
    """
    return ASSET_PLACEHOLDER_PATTERN.sub(lambda match: asset(match.group(1)), text)


__all__ = [
    "ASSET_PLACEHOLDER_PATTERN",
    "CODE_CSS_CLASS",
    "HtmlContentRenderer",
    "fence_languages",
    "label_code_blocks",
    "replace_asset_placeholders",
]
