"""Directory-scoped layout discovery and nearest-wins resolution.

Layouts are Jinja templates living in a tree that mirrors the articles
directory. ``_layout.jinja`` defines a directory's default layout and
``_layout-<variant>.jinja`` defines named variants. Content in ``guide/``
resolves by walking ``guide/`` then the layout root and stopping at the first
directory that defines any layout; the front-matter ``layout`` field then picks
the variant inside that directory.

The index of layout files is built once per build pass and every directory's
walk result is memoised, so sibling pages resolve in constant time after the
first lookup.

Example
-------
>>> from pathlib import Path
>>> resolver = LayoutResolver(Path("layouts"), build_environment(Path("layouts")))  # doctest: +SKIP
>>> [layout.template_name for layout in resolver.resolve("guide")]  # doctest: +SKIP
['guide/_layout.jinja']
"""

from __future__ import annotations

import dataclasses as dc
import logging
import posixpath
import threading
import typing as typ
from pathlib import Path

from jinja2 import ChoiceLoader, Environment, FileSystemLoader
from markupsafe import Markup

from ._constants import (
    DEFAULT_LAYOUT_VARIANT,
    LAYOUT_DEFAULT_FILENAME,
    LAYOUT_PREFIX,
    LAYOUT_SUFFIX,
)
from .errors import LayoutResolutionError

logger = logging.getLogger(__name__)

PACKAGE_TEMPLATES = Path(__file__).parent / "templates"

LayoutChain = tuple["LayoutDefinition", ...]


def build_environment(layout_dir: Path, *, dev: bool = False) -> Environment:
    """Return the Jinja environment shared by layouts and templated pages.

    Templates under ``layout_dir`` shadow the packaged defaults. In
    development mode Jinja re-checks template modification times so an edited
    layout is recompiled on its next use.
    """
    return Environment(
        loader=ChoiceLoader(
            [FileSystemLoader(str(layout_dir)), FileSystemLoader(str(PACKAGE_TEMPLATES))]
        ),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        auto_reload=dev,
    )


@dc.dataclass(slots=True, frozen=True)
class LayoutDefinition:
    """A wrapper template bound to the directory that defines it.

    Attributes
    ----------
    directory : str
        POSIX directory relative to the layout root (``""`` for the root).
    variant : str
        Variant name (``"default"`` for ``_layout.jinja``).
    template_name : str
        Loader name of the template, e.g. ``"guide/_layout.jinja"``.
    source_path : Path
        Absolute path of the template file.
    """

    directory: str
    variant: str
    template_name: str
    source_path: Path
    environment: Environment = dc.field(repr=False, compare=False)

    def render(self, inner_html: str, context: typ.Mapping[str, typ.Any]) -> str:
        """Wrap ``inner_html`` with this layout and return the markup."""
        template = self.environment.get_template(self.template_name)
        return template.render({**context, "article_html": Markup(inner_html)})


class LayoutResolver:
    """Resolve the layout chain that applies to a content directory."""

    def __init__(
        self,
        layout_dir: Path,
        environment: Environment,
        *,
        mode: str = "override",
    ) -> None:
        """Initialize the resolver for one layout root.

        Parameters
        ----------
        layout_dir : Path
            Root of the layout tree; must mirror the articles directory.
        environment : Environment
            Jinja environment whose loader can reach ``layout_dir``.
        mode : str, optional
            ``"override"`` (nearest layout wins, the default) or
            ``"compose"`` (every defining ancestor wraps the page, innermost
            first).
        """
        self.layout_dir = layout_dir
        self.environment = environment
        self.mode = mode
        self._index: dict[str, dict[str, LayoutDefinition]] | None = None
        self._walks: dict[str, tuple[str, ...]] = {}
        self._lock = threading.Lock()

    def index(self) -> dict[str, dict[str, LayoutDefinition]]:
        """Return the directory -> variant -> definition index, scanning once."""
        with self._lock:
            if self._index is None:
                self._index = self._scan()
            return self._index

    def refresh(self) -> None:
        """Drop the index, memoised walks and compiled templates."""
        with self._lock:
            self._index = None
            self._walks.clear()
            if self.environment.cache is not None:
                self.environment.cache.clear()

    def has_root_default(self) -> bool:
        """Return True when the layout root defines its default layout."""
        return DEFAULT_LAYOUT_VARIANT in self.index().get("", {})

    def resolve(
        self, directory: str, variant: str = DEFAULT_LAYOUT_VARIANT
    ) -> LayoutChain:
        """Return the ordered layout chain for content in ``directory``.

        Parameters
        ----------
        directory : str
            POSIX directory of the content file relative to the articles root.
        variant : str, optional
            Variant requested by the page's front-matter.

        Returns
        -------
        tuple[LayoutDefinition, ...]
            Innermost layout first. In override mode the chain holds exactly
            one definition.

        Raises
        ------
        LayoutResolutionError
            If no directory from ``directory`` up to the root defines a layout,
            or the nearest defining directory lacks ``variant``.
        """
        index = self.index()
        defining = self._defining_directories(directory, index)
        if not defining:
            msg = (
                f"No layout found for directory '{directory or '.'}' "
                f"or any parent under {self.layout_dir}."
            )
            raise LayoutResolutionError(msg)

        nearest = index[defining[0]]
        if variant not in nearest:
            available = ", ".join(sorted(nearest))
            msg = (
                f"Layout variant '{variant}' is not defined in "
                f"'{defining[0] or '.'}' (available: {available})."
            )
            raise LayoutResolutionError(msg)
        if self.mode != "compose":
            return (nearest[variant],)

        chain: list[LayoutDefinition] = [nearest[variant]]
        for ancestor in defining[1:]:
            variants = index[ancestor]
            layout = variants.get(variant) or variants.get(DEFAULT_LAYOUT_VARIANT)
            if layout is not None:
                chain.append(layout)
        return tuple(chain)

    def _defining_directories(
        self, directory: str, index: dict[str, dict[str, LayoutDefinition]]
    ) -> tuple[str, ...]:
        """Return layout-defining directories from ``directory`` upwards."""
        with self._lock:
            cached = self._walks.get(directory)
        if cached is not None:
            return cached

        found: list[str] = []
        current = directory.strip("/")
        while True:
            if current in index:
                found.append(current)
                if self.mode != "compose":
                    break
            if not current:
                break
            current = posixpath.dirname(current)

        result = tuple(found)
        with self._lock:
            self._walks[directory] = result
        return result

    def _scan(self) -> dict[str, dict[str, LayoutDefinition]]:
        """Walk the layout root and index every layout template."""
        index: dict[str, dict[str, LayoutDefinition]] = {}
        pattern = f"{LAYOUT_PREFIX}*{LAYOUT_SUFFIX}"
        for path in sorted(self.layout_dir.rglob(pattern)):
            if not path.is_file():
                continue
            variant = _variant_from_filename(path.name)
            if variant is None:
                continue
            template_name = path.relative_to(self.layout_dir).as_posix()
            directory = posixpath.dirname(template_name)
            index.setdefault(directory, {})[variant] = LayoutDefinition(
                directory=directory,
                variant=variant,
                template_name=template_name,
                source_path=path,
                environment=self.environment,
            )
        logger.debug("Indexed layouts for %d directories", len(index))
        return index


def _variant_from_filename(name: str) -> str | None:
    """Map ``_layout.jinja``/``_layout-<variant>.jinja`` to a variant name."""
    if name == LAYOUT_DEFAULT_FILENAME:
        return DEFAULT_LAYOUT_VARIANT
    prefix = f"{LAYOUT_PREFIX}-"
    if name.startswith(prefix) and name.endswith(LAYOUT_SUFFIX):
        variant = name[len(prefix) : -len(LAYOUT_SUFFIX)]
        return variant or None
    return None


__all__ = [
    "PACKAGE_TEMPLATES",
    "LayoutChain",
    "LayoutDefinition",
    "LayoutResolver",
    "build_environment",
]
