"""Build the site-wide navigation model from validated content sources.

The model is built once per build pass and never mutated afterwards. It does
not record which page is "current": :meth:`NavigationModel.for_page` projects
the stored entries into :class:`NavigationItem` values with ``is_current``
resolved through :func:`is_current`, so concurrent renders can share one
model safely.

Sections
--------
``header``
    Top-level pages, plus one landing entry per top-level directory (its
    ``index`` page, otherwise its first page in navigation order).
``<directory>``
    Remaining pages of that directory, keyed by its POSIX path.
``<nav-group>``
    Pages that name a section explicitly in front-matter.
"""

from __future__ import annotations

import collections
import dataclasses as dc
import types
import typing as typ

from ._constants import HEADER_SECTION

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .content import ContentSource

NavigationView = typ.Mapping[str, tuple["NavigationItem", ...]]


@dc.dataclass(slots=True, frozen=True)
class NavigationEntry:
    """A stored navigation entry; carries no per-page state."""

    slug: str
    href: str
    title: str
    order: int | None
    source_path: str


@dc.dataclass(slots=True, frozen=True)
class NavigationItem:
    """A navigation entry projected for one rendered page."""

    slug: str
    href: str
    title: str
    is_current: bool


@dc.dataclass(slots=True, frozen=True)
class NavigationSection:
    """A named, ordered group of navigation entries."""

    name: str
    entries: tuple[NavigationEntry, ...]


@dc.dataclass(slots=True, frozen=True)
class NavigationModel:
    """Immutable navigation tree shared by every render of a build pass."""

    sections: tuple[NavigationSection, ...]

    def section(self, name: str) -> NavigationSection | None:
        """Return the section called ``name`` if present."""
        matches = (section for section in self.sections if section.name == name)
        return next(matches, None)

    def entries(self) -> cabc.Iterator[NavigationEntry]:
        """Iterate over every entry in section order."""
        for section in self.sections:
            yield from section.entries

    def for_page(self, current_url: str) -> NavigationView:
        """Return a read-only view with ``is_current`` resolved for ``current_url``.

        Parameters
        ----------
        current_url : str
            Public URL (``href``) of the page being rendered.

        Returns
        -------
        Mapping[str, tuple[NavigationItem, ...]]
            Section name mapped to its projected items, in model order.
        """
        view = {
            section.name: tuple(
                _project(entry, current_url) for entry in section.entries
            )
            for section in self.sections
        }
        return types.MappingProxyType(view)


def is_current(item: NavigationEntry | NavigationItem, current_url: str) -> bool:
    """Return True when ``item`` points at the page rendered at ``current_url``."""
    return item.href == current_url


def _project(entry: NavigationEntry, current_url: str) -> NavigationItem:
    return NavigationItem(
        slug=entry.slug,
        href=entry.href,
        title=entry.title,
        is_current=is_current(entry, current_url),
    )


def _sort_key(source: ContentSource) -> tuple[bool, int, str, str]:
    """Order by explicit ``order``, then title, then path for determinism."""
    order = source.frontmatter.order
    title = source.frontmatter.nav_title or source.frontmatter.title
    return (order is None, order or 0, title.casefold(), source.relative_path)


def _entry(source: ContentSource, base_path: str) -> NavigationEntry:
    meta = source.frontmatter
    return NavigationEntry(
        slug=source.slug,
        href=source.href(base_path),
        title=meta.nav_title or meta.title,
        order=meta.order,
        source_path=source.relative_path,
    )


def build_navigation(
    sources: cabc.Iterable[ContentSource], base_path: str
) -> NavigationModel:
    """Group validated sources into navigation sections.

    Parameters
    ----------
    sources : Iterable[ContentSource]
        Every source that passed front-matter validation in this pass.
    base_path : str
        Normalised URL prefix (``/`` or ``/docs/``) prepended to each href.

    Returns
    -------
    NavigationModel
        ``header`` first, then the remaining sections by name.
    """
    groups: dict[str, list[ContentSource]] = collections.defaultdict(list)
    top_level: dict[str, list[ContentSource]] = collections.defaultdict(list)
    for source in sources:
        meta = source.frontmatter
        if not meta.nav:
            continue
        if meta.nav_group:
            groups[meta.nav_group].append(source)
        elif not source.directory:
            groups[HEADER_SECTION].append(source)
        elif "/" not in source.directory:
            top_level[source.directory].append(source)
        else:
            groups[source.directory].append(source)

    for directory, members in top_level.items():
        ordered = sorted(members, key=_sort_key)
        landing = next((page for page in ordered if page.is_index), ordered[0])
        groups[HEADER_SECTION].append(landing)
        groups[directory].extend(page for page in ordered if page is not landing)

    names = sorted(name for name in groups if name != HEADER_SECTION)
    sections = [
        NavigationSection(
            name=name,
            entries=tuple(
                _entry(source, base_path)
                for source in sorted(groups.get(name, []), key=_sort_key)
            ),
        )
        for name in [HEADER_SECTION, *names]
    ]
    return NavigationModel(
        sections=tuple(
            section
            for section in sections
            if section.entries or section.name == HEADER_SECTION
        )
    )


__all__ = [
    "NavigationEntry",
    "NavigationItem",
    "NavigationModel",
    "NavigationSection",
    "NavigationView",
    "build_navigation",
    "is_current",
]
