"""Markdown conversion, link rewriting, and page composition for sitepress."""

from .composer import THEME_SCRIPT, RenderComposer
from .link_rewriter import RelativeLinkExtension
from .renderer import HtmlContentRenderer, replace_asset_placeholders

__all__ = [
    "THEME_SCRIPT",
    "HtmlContentRenderer",
    "RelativeLinkExtension",
    "RenderComposer",
    "replace_asset_placeholders",
]
