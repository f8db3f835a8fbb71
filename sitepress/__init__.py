"""Assemble static sites from markdown, directory-scoped layouts, and assets.

This package exposes the pipeline used by the ``sitepress`` console script:
load a :class:`~sitepress.config.BuildContext` from ``site.yaml``, then run a
production pass with :class:`SiteBuilder` or a watching development loop
with :func:`~sitepress.watcher.watch`.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``SiteBuilder`` / ``BuildReport``: programmatic build entry points.

Examples
--------
>>> from pathlib import Path
>>> from sitepress import SiteBuilder, load_build_context
>>> SiteBuilder(load_build_context(Path("site.yaml"))).build().ok  # doctest: +SKIP
True
"""

from __future__ import annotations

from .builder import BuildReport, SiteBuilder
from .cli import app, main
from .config import BuildContext, SiteMetadata, load_build_context

__all__ = [
    "BuildContext",
    "BuildReport",
    "SiteBuilder",
    "SiteMetadata",
    "app",
    "load_build_context",
    "main",
]
