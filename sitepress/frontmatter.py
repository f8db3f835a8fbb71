r"""Split content sources into front-matter metadata and body text.

Front-matter is a YAML block delimited by ``---`` lines at the very top of a
file. :func:`extract` separates it from the body without interpreting any
field; :func:`validate` then enforces the one required field, ``title``, and
lifts the recognised optional fields into a :class:`Frontmatter` record.

Example
-------
>>> from sitepress.frontmatter import extract, validate
>>> raw = extract("---\ntitle: Intro\norder: 2\n---\n# Hello\n")
>>> raw.body
'# Hello\n'
>>> meta = validate(raw.frontmatter)
>>> (meta.title, meta.order)
('Intro', 2)
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ._constants import DEFAULT_LAYOUT_VARIANT
from .errors import FrontmatterError, ValidationError

logger = logging.getLogger(__name__)

DELIMITER = "---"
KNOWN_FIELDS = frozenset(
    {
        "title",
        "description",
        "order",
        "nav-order",
        "layout",
        "nav",
        "nav-group",
        "nav-title",
        "lastmod",
        "changefreq",
        "priority",
    }
)
CHANGEFREQ_VALUES = frozenset(
    {"always", "hourly", "daily", "weekly", "monthly", "yearly", "never"}
)


@dc.dataclass(slots=True, frozen=True)
class ExtractedSource:
    """Raw result of :func:`extract`.

    Attributes
    ----------
    body : str
        Text following the closing delimiter (the whole file when no
        front-matter block is present).
    frontmatter : dict[str, Any]
        Parsed YAML mapping, empty when the file has no front-matter.
    """

    body: str
    frontmatter: dict[str, typ.Any]


@dc.dataclass(slots=True, frozen=True)
class Frontmatter:
    """Validated page metadata.

    Attributes
    ----------
    title : str
        Non-empty, stripped page title.
    description : str or None
        Optional summary used in ``<meta name="description">``.
    order : int or None
        Explicit navigation position (``order`` or ``nav-order``).
    layout : str
        Layout variant name selected within the resolved layout directory.
    nav : bool
        ``False`` keeps the page out of the navigation model.
    nav_group : str or None
        Explicit navigation section overriding the directory-derived one.
    nav_title : str or None
        Navigation label overriding ``title``.
    lastmod, changefreq, priority
        Optional sitemap hints.
    extra : dict[str, Any]
        Every other field, preserved untouched for layouts.
    """

    title: str
    description: str | None = None
    order: int | None = None
    layout: str = DEFAULT_LAYOUT_VARIANT
    nav: bool = True
    nav_group: str | None = None
    nav_title: str | None = None
    lastmod: str | None = None
    changefreq: str | None = None
    priority: float | None = None
    extra: dict[str, typ.Any] = dc.field(default_factory=dict)


def extract(raw_text: str, *, path: str | None = None) -> ExtractedSource:
    """Split ``raw_text`` into its front-matter mapping and body.

    Parameters
    ----------
    raw_text : str
        Full contents of a content source file.
    path : str, optional
        Content path used to tag raised errors.

    Returns
    -------
    ExtractedSource
        Body text and the untyped front-matter mapping.

    Raises
    ------
    FrontmatterError
        If the opening delimiter is never closed, the YAML cannot be parsed,
        or the block is not a mapping.
    """
    text = raw_text.removeprefix("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != DELIMITER:
        return ExtractedSource(body=text, frontmatter={})

    closing = next(
        (
            idx
            for idx, line in enumerate(lines[1:], start=1)
            if line.rstrip() == DELIMITER
        ),
        None,
    )
    if closing is None:
        msg = "Front-matter block opened with '---' is never closed."
        raise FrontmatterError(msg, path=path)

    yaml_text = "".join(lines[1:closing])
    body = "".join(lines[closing + 1 :])
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(yaml_text)
    except YAMLError as exc:
        msg = f"Invalid YAML in front-matter: {exc}"
        raise FrontmatterError(msg, path=path) from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        msg = f"Front-matter must be a mapping, got {type(loaded).__name__}."
        raise FrontmatterError(msg, path=path)
    mapping = {str(key): value for key, value in loaded.items()}
    return ExtractedSource(body=body, frontmatter=mapping)


def validate(
    frontmatter: typ.Mapping[str, typ.Any], *, path: str | None = None
) -> Frontmatter:
    """Validate a raw front-matter mapping and return a :class:`Frontmatter`.

    Raises
    ------
    ValidationError
        If ``title`` is absent, not a string, or blank after trimming.
    """
    title = frontmatter.get("title")
    if not isinstance(title, str) or not title.strip():
        msg = "Front-matter requires a non-empty 'title'."
        raise ValidationError(msg, path=path)

    extra = {
        key: value for key, value in frontmatter.items() if key not in KNOWN_FIELDS
    }
    order_value = frontmatter.get("order", frontmatter.get("nav-order"))
    return Frontmatter(
        title=title.strip(),
        description=_optional_text(frontmatter.get("description")),
        order=_coerce_order(order_value, path=path),
        layout=_optional_text(frontmatter.get("layout")) or DEFAULT_LAYOUT_VARIANT,
        nav=frontmatter.get("nav") is not False,
        nav_group=_optional_text(frontmatter.get("nav-group")),
        nav_title=_optional_text(frontmatter.get("nav-title")),
        lastmod=_optional_text(frontmatter.get("lastmod")),
        changefreq=_coerce_changefreq(frontmatter.get("changefreq"), path=path),
        priority=_coerce_priority(frontmatter.get("priority"), path=path),
        extra=extra,
    )


def _optional_text(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_order(value: object, *, path: str | None) -> int | None:
    match value:
        case None:
            return None
        case bool():
            pass
        case int():
            return value
        case float() if value.is_integer():
            return int(value)
        case str() if value.strip().lstrip("-").isdigit():
            return int(value.strip())
    logger.warning("%s: ignoring non-integer order %r", path or "<source>", value)
    return None


def _coerce_changefreq(value: object, *, path: str | None) -> str | None:
    text = _optional_text(value)
    if text is None:
        return None
    if text.lower() not in CHANGEFREQ_VALUES:
        logger.warning("%s: ignoring unknown changefreq %r", path or "<source>", text)
        return None
    return text.lower()


def _coerce_priority(value: object, *, path: str | None) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        priority = float(typ.cast("typ.Any", value))
    except (TypeError, ValueError):
        priority = -1.0
    if not 0.0 <= priority <= 1.0:
        logger.warning(
            "%s: ignoring out-of-range priority %r", path or "<source>", value
        )
        return None
    return priority


__all__ = ["ExtractedSource", "Frontmatter", "extract", "validate"]
