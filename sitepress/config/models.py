"""Typed dataclasses describing sitepress build configuration."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

LAYOUT_MODES = ("override", "compose")


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True, frozen=True)
class SiteMetadata:
    """Site-wide metadata rendered into every document head.

    Attributes
    ----------
    site_name : str
        Name prefixed to every page title (``"{site_name} | {title}"``).
    site_url : str or None
        Canonical origin such as ``https://example.com``; enables canonical
        links, ``sitemap.xml`` and ``robots.txt`` when set.
    description : str
        Fallback description for pages without their own.
    theme_color : str
        Colour used by the web manifest and the ``theme-color`` meta tag.
    stylesheets : tuple[str, ...]
        Logical asset names linked from the document head.
    favicon : str or None
        Logical asset name of the favicon.
    icons : dict[str, str]
        Manifest icon sizes (``"192x192"``) mapped to logical asset names.
    """

    site_name: str = "Site"
    site_url: str | None = None
    description: str = ""
    theme_color: str = "#ffffff"
    stylesheets: tuple[str, ...] = ()
    favicon: str | None = None
    icons: dict[str, str] = dc.field(default_factory=dict)

    def absolute_url(self, href: str) -> str | None:
        """Return ``href`` joined onto ``site_url``, or None without a site URL.

        ``site_url`` is treated as an origin; ``href`` already carries the
        base path.

        Examples
        --------
        >>> SiteMetadata(site_url="https://example.com/").absolute_url("/docs/")
        'https://example.com/docs/'
        """
        if not self.site_url:
            return None
        return f"{self.site_url.rstrip('/')}/{href.lstrip('/')}"


@dc.dataclass(slots=True, frozen=True)
class BuildContext:
    """Per-pipeline configuration shared read-only by every component."""

    articles_dir: Path
    output_dir: Path
    layout_dir: Path
    assets_dir: Path
    base_path: str = "/"
    dev: bool = False
    site: SiteMetadata = dc.field(default_factory=SiteMetadata)
    workers: int = 4
    layout_mode: str = "override"

    def __post_init__(self) -> None:
        if self.layout_mode not in LAYOUT_MODES:
            msg = (
                f"Unknown layout_mode '{self.layout_mode}'; "
                f"expected one of {', '.join(LAYOUT_MODES)}."
            )
            raise SiteConfigError(msg)
        if self.workers < 1:
            msg = "workers must be at least 1."
            raise SiteConfigError(msg)
        object.__setattr__(self, "base_path", normalize_base_path(self.base_path))

    def replace(self, **changes: object) -> BuildContext:
        """Return a copy of the context with ``changes`` applied."""
        return dc.replace(self, **changes)  # type: ignore[arg-type]


def normalize_base_path(value: str | None) -> str:
    """Return ``value`` with exactly one leading and one trailing slash.

    Examples
    --------
    >>> normalize_base_path("docs")
    '/docs/'
    >>> normalize_base_path("/")
    '/'
    """
    stripped = (value or "").strip().strip("/")
    if not stripped:
        return "/"
    return f"/{stripped}/"


__all__ = [
    "LAYOUT_MODES",
    "BuildContext",
    "SiteConfigError",
    "SiteMetadata",
    "normalize_base_path",
]
