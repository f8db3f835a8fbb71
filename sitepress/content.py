"""Discover content sources and derive their output paths and URLs.

A content source is one ``.md`` or ``.jinja`` file under the articles
directory. Its output path mirrors the relative input path with the suffix
swapped for ``.html``; its URL collapses ``index.html`` into the directory
URL so ``guide/index.md`` is served at ``guide/``.

Example
-------
>>> derive_output_path("guide/intro.md")
'guide/intro.html'
>>> derive_url("guide/index.html")
'guide/'
"""

from __future__ import annotations

import dataclasses as dc
import posixpath
import typing as typ
from pathlib import Path, PurePosixPath

from ._constants import CONTENT_SUFFIXES
from .errors import BuildIOError, PipelineError
from .frontmatter import Frontmatter, extract, validate

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@dc.dataclass(slots=True, frozen=True)
class ContentSource:
    """One validated input file, immutable for the rest of a build pass.

    Attributes
    ----------
    absolute_path : Path
        Location of the file on disk.
    relative_path : str
        POSIX path relative to the articles directory.
    raw_text : str
        Full file contents as read at discovery time.
    body : str
        Text after the front-matter block.
    frontmatter : Frontmatter
        Validated metadata.
    output_path : str
        POSIX path of the rendered file relative to the output directory.
    url : str
        Output path with ``index.html`` collapsed, without leading slash.
    """

    absolute_path: Path
    relative_path: str
    raw_text: str
    body: str
    frontmatter: Frontmatter
    output_path: str
    url: str

    @property
    def directory(self) -> str:
        """Return the POSIX directory of the source (``""`` for the root)."""
        return posixpath.dirname(self.relative_path)

    @property
    def slug(self) -> str:
        """Return the relative path without its suffix (``guide/intro``)."""
        return str(PurePosixPath(self.relative_path).with_suffix(""))

    @property
    def is_template(self) -> bool:
        """Return True when the body is a templated component, not markdown."""
        return self.relative_path.endswith(".jinja")

    @property
    def is_index(self) -> bool:
        """Return True for directory index pages."""
        return PurePosixPath(self.relative_path).stem == "index"

    def href(self, base_path: str) -> str:
        """Return the public URL of the page under ``base_path``."""
        return f"{base_path}{self.url}"


def derive_output_path(relative_path: str) -> str:
    """Return the ``.html`` output path for a content path."""
    return str(PurePosixPath(relative_path).with_suffix(".html"))


def derive_url(output_path: str) -> str:
    """Collapse a trailing ``index.html`` into its directory URL."""
    if output_path == "index.html":
        return ""
    if output_path.endswith("/index.html"):
        return output_path[: -len("index.html")]
    return output_path


def is_content_path(relative: PurePosixPath) -> bool:
    """Return True when ``relative`` names a content file rather than a partial."""
    if relative.suffix not in CONTENT_SUFFIXES:
        return False
    return not any(part.startswith(("_", ".")) for part in relative.parts)


def discover_sources(articles_dir: Path) -> list[Path]:
    """Return every content file under ``articles_dir`` in a stable order."""
    found: list[Path] = []
    for path in articles_dir.rglob("*"):
        if not path.is_file():
            continue
        relative = PurePosixPath(path.relative_to(articles_dir).as_posix())
        if is_content_path(relative):
            found.append(path)
    return sorted(found, key=lambda item: item.relative_to(articles_dir).as_posix())


def relative_content_path(path: Path, articles_dir: Path) -> str:
    """Return the POSIX path of ``path`` relative to ``articles_dir``."""
    return path.relative_to(articles_dir).as_posix()


def load_source(path: Path, articles_dir: Path) -> ContentSource:
    """Read, extract, and validate a single content file.

    Raises
    ------
    BuildIOError
        If the file cannot be read.
    FrontmatterError, ValidationError
        If the front-matter block is malformed or lacks a title.
    """
    relative = relative_content_path(path, articles_dir)
    try:
        raw_text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Unable to read content file: {exc}"
        raise BuildIOError(msg, path=relative) from exc
    extracted = extract(raw_text, path=relative)
    frontmatter = validate(extracted.frontmatter, path=relative)
    output_path = derive_output_path(relative)
    return ContentSource(
        absolute_path=path,
        relative_path=relative,
        raw_text=raw_text,
        body=extracted.body,
        frontmatter=frontmatter,
        output_path=output_path,
        url=derive_url(output_path),
    )


def load_sources(
    paths: cabc.Iterable[Path], articles_dir: Path
) -> tuple[list[ContentSource], list[PipelineError]]:
    """Load every path, separating valid sources from per-file failures."""
    sources: list[ContentSource] = []
    errors: list[PipelineError] = []
    for path in paths:
        try:
            sources.append(load_source(path, articles_dir))
        except PipelineError as exc:
            errors.append(exc)
    return sources, errors


__all__ = [
    "ContentSource",
    "derive_output_path",
    "derive_url",
    "discover_sources",
    "is_content_path",
    "load_source",
    "load_sources",
    "relative_content_path",
]
