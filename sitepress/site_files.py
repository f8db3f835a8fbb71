"""Site-wide files written next to the rendered pages.

A production build finishes by writing ``sitemap.xml`` and ``robots.txt``
(only when the site has a canonical URL), the web app manifest, and a
``_headers`` file carrying ``Cache-Control`` rules for static hosts that
understand it. Each renderer is a pure function returning text so tests can
inspect the output without touching the filesystem.
"""

from __future__ import annotations

import dataclasses as dc
import json
import logging
import typing as typ

from ._constants import ASSETS_DIR_NAME, SITEMAP_TEMPLATE
from .assets import FINGERPRINTED_ASSET_POLICY, HTML_POLICY
from .output import write_atomic

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from jinja2 import Environment

    from .assets import AssetLookup
    from .config import BuildContext, SiteMetadata
    from .content import ContentSource

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True, frozen=True)
class SitemapEntry:
    """One ``<url>`` element of the sitemap."""

    loc: str
    lastmod: str | None = None
    changefreq: str | None = None
    priority: float | None = None


def sitemap_entries(
    sources: cabc.Iterable[ContentSource], site: SiteMetadata, base_path: str
) -> list[SitemapEntry]:
    """Return sitemap entries for ``sources`` ordered by URL."""
    entries: list[SitemapEntry] = []
    for source in sources:
        loc = site.absolute_url(source.href(base_path))
        if loc is None:
            continue
        meta = source.frontmatter
        entries.append(
            SitemapEntry(
                loc=loc,
                lastmod=meta.lastmod,
                changefreq=meta.changefreq,
                priority=meta.priority,
            )
        )
    return sorted(entries, key=lambda entry: entry.loc)


def render_sitemap(
    environment: Environment, entries: cabc.Sequence[SitemapEntry]
) -> str:
    """Render ``sitemap.xml`` from ``entries``."""
    template = environment.get_template(SITEMAP_TEMPLATE)
    return template.render(entries=entries)


def render_robots(site: SiteMetadata, base_path: str) -> str:
    """Return a ``robots.txt`` allowing every crawler and linking the sitemap.

    Examples
    --------
    >>> from sitepress.config import SiteMetadata
    >>> print(render_robots(SiteMetadata(site_url="https://example.com"), "/"))
    User-agent: *
    Allow: /
    Sitemap: https://example.com/sitemap.xml
    <BLANKLINE>
    """
    lines = ["User-agent: *", f"Allow: {base_path}"]
    sitemap_url = site.absolute_url(f"{base_path}sitemap.xml")
    if sitemap_url:
        lines.append(f"Sitemap: {sitemap_url}")
    return "\n".join(lines) + "\n"


def render_manifest(site: SiteMetadata, base_path: str, assets: AssetLookup) -> str:
    """Return the JSON web app manifest with icons resolved through ``assets``.

    Raises
    ------
    AssetNotFoundError
        If a configured icon was not prepared.
    """
    icons = [
        {
            "src": assets(name, page="manifest.webmanifest"),
            "sizes": size,
            "type": _icon_type(name),
        }
        for size, name in sorted(site.icons.items())
    ]
    payload = {
        "name": site.site_name,
        "short_name": site.site_name,
        "description": site.description,
        "start_url": base_path,
        "scope": base_path,
        "display": "standalone",
        "theme_color": site.theme_color,
        "background_color": site.theme_color,
        "icons": icons,
    }
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def render_headers(base_path: str) -> str:
    """Return ``_headers`` rules for fingerprinted assets and HTML pages.

    Examples
    --------
    >>> print(render_headers("/"))
    /__assets/*
      Cache-Control: public, max-age=31536000, immutable
    <BLANKLINE>
    /*
      Cache-Control: public, max-age=0, must-revalidate
    <BLANKLINE>
    """
    return (
        f"{base_path}{ASSETS_DIR_NAME}/*\n"
        f"  Cache-Control: {FINGERPRINTED_ASSET_POLICY.header_value()}\n"
        "\n"
        f"{base_path}*\n"
        f"  Cache-Control: {HTML_POLICY.header_value()}\n"
    )


def write_site_files(
    context: BuildContext,
    environment: Environment,
    sources: cabc.Sequence[ContentSource],
    assets: AssetLookup,
) -> list[Path]:
    """Write the site-wide files for a production build.

    Parameters
    ----------
    context : BuildContext
        Build configuration; ``context.dev`` builds only get the manifest.
    environment : Environment
        Environment able to load the packaged sitemap template.
    sources : Sequence[ContentSource]
        Pages successfully written in this pass.
    assets : AssetLookup
        Lookup used to resolve manifest icons.

    Returns
    -------
    list[Path]
        Paths of the files written.
    """
    out = context.output_dir
    site = context.site
    written = [
        write_atomic(
            out / "manifest.webmanifest",
            render_manifest(site, context.base_path, assets),
        )
    ]
    if context.dev:
        return written

    if site.site_url:
        entries = sitemap_entries(sources, site, context.base_path)
        sitemap = render_sitemap(environment, entries)
        written.append(write_atomic(out / "sitemap.xml", sitemap))
        written.append(
            write_atomic(out / "robots.txt", render_robots(site, context.base_path))
        )
    else:
        logger.info("site_url not configured; skipping sitemap.xml and robots.txt")
    written.append(write_atomic(out / "_headers", render_headers(context.base_path)))
    return written


def _icon_type(name: str) -> str:
    suffix = name.rsplit(".", 1)[-1].lower()
    match suffix:
        case "svg":
            return "image/svg+xml"
        case "jpg" | "jpeg":
            return "image/jpeg"
        case "webp":
            return "image/webp"
        case "ico":
            return "image/x-icon"
        case _:
            return "image/png"


__all__ = [
    "SitemapEntry",
    "render_headers",
    "render_manifest",
    "render_robots",
    "render_sitemap",
    "sitemap_entries",
    "write_site_files",
]
