"""Utility helpers shared by the sitepress configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .models import SiteConfigError, SiteMetadata

REQUIRED_DIRECTORIES = ("articles_dir", "output_dir", "layout_dir", "assets_dir")


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _normalize_names(value: str | list[object] | None) -> tuple[str, ...]:
    """Normalize asset name definitions into a tuple of non-empty strings."""
    if isinstance(value, str):
        return tuple(segment for segment in value.split() if segment)
    if isinstance(value, list):
        normalized: list[str] = []
        for segment in value:
            text = str(segment).strip()
            if text:
                normalized.append(text)
        return tuple(normalized)
    return ()


def _resolve_dir(value: object, base_dir: Path) -> Path:
    """Resolve a configured directory relative to the config file location."""
    path = Path(str(value)).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path


def _parse_bool(value: object, *, field: str) -> bool:
    """Interpret YAML/CLI boolean-ish values strictly."""
    match value:
        case bool():
            return value
        case str() as text if text.strip().lower() in {"1", "true", "yes", "on"}:
            return True
        case str() as text if text.strip().lower() in {"0", "false", "no", "off"}:
            return False
        case _:
            msg = f"'{field}' must be a boolean, got {value!r}."
            raise SiteConfigError(msg)


def _parse_workers(value: object) -> int:
    """Return a positive worker count."""
    try:
        workers = int(typ.cast("typ.Any", value))
    except (TypeError, ValueError) as exc:
        msg = f"'workers' must be an integer, got {value!r}."
        raise SiteConfigError(msg) from exc
    if workers < 1:
        msg = "'workers' must be at least 1."
        raise SiteConfigError(msg)
    return workers


def _build_site_metadata(payload: typ.Mapping[str, typ.Any] | None) -> SiteMetadata:
    """Build a SiteMetadata instance from the provided mapping payload."""
    base = SiteMetadata()
    if not payload:
        return base
    if not isinstance(payload, dict):
        msg = "'site' configuration must be a mapping."
        raise SiteConfigError(msg)
    icons_raw = payload.get("icons") or {}
    if not isinstance(icons_raw, dict):
        msg = "'site.icons' must map sizes to asset names."
        raise SiteConfigError(msg)
    return SiteMetadata(
        site_name=_optional_str(payload.get("site_name")) or base.site_name,
        site_url=_optional_str(payload.get("site_url")),
        description=_optional_str(payload.get("description")) or base.description,
        theme_color=_optional_str(payload.get("theme_color")) or base.theme_color,
        stylesheets=_normalize_names(payload.get("stylesheets")),
        favicon=_optional_str(payload.get("favicon")),
        icons={str(size): str(name) for size, name in icons_raw.items() if name},
    )


__all__ = [
    "REQUIRED_DIRECTORIES",
    "_build_site_metadata",
    "_normalize_names",
    "_optional_str",
    "_parse_bool",
    "_parse_workers",
    "_resolve_dir",
]
