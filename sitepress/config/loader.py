"""Load site configuration YAML into a typed :class:`BuildContext`."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .helpers import (
    REQUIRED_DIRECTORIES,
    _build_site_metadata,
    _optional_str,
    _parse_bool,
    _parse_workers,
    _resolve_dir,
)
from .models import BuildContext, SiteConfigError, SiteMetadata


def load_build_context(path: Path, **overrides: typ.Any) -> BuildContext:
    """Load the YAML configuration describing one site build.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``site.yaml``). Relative directories inside it resolve against the
        file's parent directory.
    **overrides : Any
        Values that take precedence over the file (``output_dir``,
        ``base_path``, ``dev``, ``workers`` ...). ``None`` values are ignored
        so CLI options can be forwarded unconditionally.

    Returns
    -------
    BuildContext
        Fully resolved build configuration.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If a required directory is missing or a value is invalid.

    Examples
    --------
    >>> from pathlib import Path
    >>> from sitepress.config import load_build_context
    >>> context = load_build_context(Path("site.yaml"), dev=True)  # doctest: +SKIP
    >>> context.base_path  # doctest: +SKIP
    '/'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    raw.update({key: value for key, value in overrides.items() if value is not None})
    return build_context_from_mapping(raw, base_dir=path.resolve().parent)


def build_context_from_mapping(
    raw: typ.Mapping[str, typ.Any], *, base_dir: Path
) -> BuildContext:
    """Build a BuildContext from an already parsed mapping."""
    directories: dict[str, Path] = {}
    for key in REQUIRED_DIRECTORIES:
        value = raw.get(key)
        if value is None or not str(value).strip():
            msg = f"Site configuration is missing '{key}'."
            raise SiteConfigError(msg)
        directories[key] = _resolve_dir(value, base_dir)

    site = raw.get("site")
    if isinstance(site, SiteMetadata):
        site_metadata = site
    else:
        site_metadata = _build_site_metadata(site)

    return BuildContext(
        articles_dir=directories["articles_dir"],
        output_dir=directories["output_dir"],
        layout_dir=directories["layout_dir"],
        assets_dir=directories["assets_dir"],
        base_path=_optional_str(raw.get("base_path")) or "/",
        dev=_parse_bool(raw.get("dev", False), field="dev"),
        site=site_metadata,
        workers=_parse_workers(raw.get("workers", 4)),
        layout_mode=_optional_str(raw.get("layout_mode")) or "override",
    )


__all__ = ["build_context_from_mapping", "load_build_context"]
