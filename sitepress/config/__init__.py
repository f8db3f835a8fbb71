"""Load and validate site configuration YAML for sitepress builds.

This subpackage parses a project's ``site.yaml`` file, resolves directory
paths relative to the file, applies CLI overrides, and produces a frozen
:class:`BuildContext` that every pipeline stage reads. The primary entry point
is :func:`load_build_context`.

Examples
--------
>>> from pathlib import Path
>>> from sitepress.config import load_build_context
>>> context = load_build_context(Path("site.yaml"))  # doctest: +SKIP
>>> context.articles_dir.name  # doctest: +SKIP
'articles'
"""

from .loader import build_context_from_mapping, load_build_context
from .models import (
    LAYOUT_MODES,
    BuildContext,
    SiteConfigError,
    SiteMetadata,
    normalize_base_path,
)

__all__ = [
    "LAYOUT_MODES",
    "BuildContext",
    "SiteConfigError",
    "SiteMetadata",
    "build_context_from_mapping",
    "load_build_context",
    "normalize_base_path",
]
