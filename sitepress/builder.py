"""Drive one build pass from content discovery to written output.

:class:`SiteBuilder` owns the long-lived collaborators of a pipeline (Jinja
environment, layout resolver, asset pipeline, render composer) and the state
of the most recent pass (sources, navigation model, asset lookup). A pass
moves through :class:`BuildState` in order::

    Idle -> Discovering -> Resolving -> Rendering -> Writing -> Done

Per-file failures are collected into the :class:`BuildReport` and never stop
other pages from rendering. Missing roots, an empty content tree, a missing
root layout, duplicate output paths, and write failures abort the pass.

Example
-------
>>> from pathlib import Path
>>> from sitepress.config import load_build_context
>>> report = SiteBuilder(load_build_context(Path("site.yaml"))).build()  # doctest: +SKIP
>>> report.ok  # doctest: +SKIP
True
"""

from __future__ import annotations

import collections
import dataclasses as dc
import enum
import logging
import typing as typ
from concurrent.futures import ThreadPoolExecutor

from ._constants import CODE_STYLESHEET, ERROR_PAGE_TEMPLATE
from .assets import AssetPipeline
from .content import derive_output_path, discover_sources, load_sources
from .errors import BuildIOError, LayoutResolutionError, PipelineError
from .generator import HtmlContentRenderer, RenderComposer
from .layouts import LayoutResolver, build_environment
from .navigation import NavigationModel, build_navigation
from .output import write_atomic
from .site_files import write_site_files

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from .assets import AssetLookup
    from .config import BuildContext
    from .content import ContentSource
    from .layouts import LayoutChain

logger = logging.getLogger(__name__)


class BuildState(enum.Enum):
    """Phases of a build pass."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    RESOLVING = "resolving"
    RENDERING = "rendering"
    WRITING = "writing"
    DONE = "done"


@dc.dataclass(slots=True)
class BuildReport:
    """Outcome of a build pass.

    Attributes
    ----------
    written : list[Path]
        Every file written, pages first in source order, then site files.
    errors : list[PipelineError]
        Per-file failures collected during the pass.
    warnings : list[str]
        Non-fatal notices such as pages left out of navigation.
    pages : int
        Number of pages rendered successfully.
    """

    written: list[Path] = dc.field(default_factory=list)
    errors: list[PipelineError] = dc.field(default_factory=list)
    warnings: list[str] = dc.field(default_factory=list)
    pages: int = 0

    @property
    def ok(self) -> bool:
        """Return True when no per-file error was collected."""
        return not self.errors

    def record(self, error: PipelineError) -> None:
        """Collect a per-file failure."""
        logger.error("error[%s] %s", error.kind, error)
        self.errors.append(error)

    def warn(self, message: str) -> None:
        """Collect a non-fatal notice."""
        logger.warning("%s", message)
        self.warnings.append(message)


@dc.dataclass(slots=True, frozen=True)
class PageOutcome:
    """Result of rendering one content path."""

    relative_path: str
    output: Path | None = None
    error: PipelineError | None = None


class SiteBuilder:
    """Build a site from a :class:`~sitepress.config.BuildContext`."""

    def __init__(self, context: BuildContext) -> None:
        """Initialize the builder and its per-pipeline collaborators.

        Parameters
        ----------
        context : BuildContext
            Read-only build configuration shared with every component.
        """
        self.context = context
        self.environment = build_environment(context.layout_dir, dev=context.dev)
        self.layouts = LayoutResolver(
            context.layout_dir, self.environment, mode=context.layout_mode
        )
        self.renderer = HtmlContentRenderer()
        self.composer = RenderComposer(
            self.environment, context, renderer=self.renderer
        )
        self.asset_pipeline = AssetPipeline(
            context.assets_dir,
            context.output_dir,
            base_path=context.base_path,
            dev=context.dev,
        )
        self.state = BuildState.IDLE
        self.sources: dict[str, ContentSource] = {}
        self.failures: dict[str, PipelineError] = {}
        self.rendered: set[str] = set()
        self.navigation = NavigationModel(sections=())
        self.assets: AssetLookup | None = None

    def build(self) -> BuildReport:
        """Run one full pass and return its report.

        Raises
        ------
        BuildIOError
            If a root directory is missing or output cannot be written.
        LayoutResolutionError
            If the layout root lacks its default ``_layout.jinja``.
        PipelineError
            If no content is discovered, output paths collide, or (in
            production) no page passes validation.
        """
        report = BuildReport()
        self._enter(BuildState.DISCOVERING)
        self.check_roots()
        paths = discover_sources(self.context.articles_dir)
        if not paths:
            msg = f"No content files found under {self.context.articles_dir}."
            raise PipelineError(msg)
        self.layouts.refresh()
        self.composer.refresh()
        self.check_root_layout()
        self.prepare_assets()

        self.sources.clear()
        self.failures.clear()
        self.rendered.clear()
        self.load(paths, report)
        if not self.sources and not self.context.dev:
            msg = "No page passed front-matter validation."
            raise PipelineError(msg)

        self._enter(BuildState.RESOLVING)
        self.refresh_navigation()
        self.render(sorted({*self.sources, *self.failures}), report)
        self.write_site_files(report)
        self._enter(BuildState.DONE)
        logger.info(
            "Built %d pages with %d errors into %s",
            report.pages,
            len(report.errors),
            self.context.output_dir,
        )
        return report

    def check_roots(self) -> None:
        """Fail the pass when the content or layout root is missing."""
        if not self.context.articles_dir.is_dir():
            msg = f"Content root {self.context.articles_dir} does not exist."
            raise BuildIOError(msg)
        if not self.context.layout_dir.is_dir():
            msg = f"Layout root {self.context.layout_dir} does not exist."
            raise LayoutResolutionError(msg)

    def check_root_layout(self) -> None:
        """Fail the pass when the designated root default layout is missing."""
        if not self.layouts.has_root_default():
            msg = f"Root layout _layout.jinja missing from {self.context.layout_dir}."
            raise LayoutResolutionError(msg)

    def prepare_assets(self) -> AssetLookup:
        """Prepare assets (including the code stylesheet) for this pass."""
        generated = {CODE_STYLESHEET: self.renderer.stylesheet.encode("utf-8")}
        self.assets = self.asset_pipeline.prepare(generated)
        return self.assets

    def load(self, paths: cabc.Iterable[Path], report: BuildReport) -> None:
        """Read and validate ``paths``, replacing any earlier state for them.

        Raises
        ------
        PipelineError
            If two sources derive the same output path.
        """
        articles_dir = self.context.articles_dir
        paths = list(paths)
        for path in paths:
            relative = path.relative_to(articles_dir).as_posix()
            self.sources.pop(relative, None)
            self.failures.pop(relative, None)
        loaded, errors = load_sources(paths, articles_dir)
        for error in errors:
            if isinstance(error, BuildIOError):
                raise error
            self.failures[error.path or ""] = error
            report.warn(f"{error.path}: excluded from navigation ({error.kind})")
        for source in loaded:
            self.sources[source.relative_path] = source
        self._check_duplicate_outputs()

    def forget(self, relative_path: str) -> bool:
        """Drop a deleted source from the pass state; return True if known."""
        known = relative_path in self.sources or relative_path in self.failures
        self.sources.pop(relative_path, None)
        self.failures.pop(relative_path, None)
        self.rendered.discard(relative_path)
        return known

    def refresh_navigation(self) -> bool:
        """Rebuild the navigation model; return True when it changed."""
        ordered = [self.sources[key] for key in sorted(self.sources)]
        model = build_navigation(ordered, self.context.base_path)
        changed = model != self.navigation
        self.navigation = model
        return changed

    def render(self, relative_paths: cabc.Sequence[str], report: BuildReport) -> None:
        """Render and write ``relative_paths`` in the worker pool.

        Each page is written as soon as it is rendered. In development mode
        a failing page is replaced by an inline error page.
        """
        self._enter(BuildState.RENDERING)
        hrefs = {
            key: source.href(self.context.base_path)
            for key, source in self.sources.items()
        }
        with ThreadPoolExecutor(max_workers=self.context.workers) as executor:
            outcomes = list(
                executor.map(lambda key: self._render_one(key, hrefs), relative_paths)
            )
        self._enter(BuildState.WRITING)
        for outcome in outcomes:
            if outcome.error is not None:
                self.rendered.discard(outcome.relative_path)
                report.record(outcome.error)
            else:
                self.rendered.add(outcome.relative_path)
                report.pages += 1
            if outcome.output is not None:
                report.written.append(outcome.output)

    def chain_for(self, source: ContentSource) -> LayoutChain:
        """Return the layout chain for ``source``."""
        try:
            return self.layouts.resolve(source.directory, source.frontmatter.layout)
        except LayoutResolutionError as exc:
            raise exc.with_path(source.relative_path)

    def write_site_files(self, report: BuildReport) -> None:
        """Write the manifest and, in production, sitemap, robots and headers.

        Only pages whose last render succeeded are listed.
        """
        written = [
            self.sources[key] for key in sorted(self.sources) if key in self.rendered
        ]
        try:
            report.written.extend(
                write_site_files(
                    self.context, self.environment, written, self._require_assets()
                )
            )
        except BuildIOError:
            raise
        except PipelineError as exc:
            report.record(exc)

    def write_error_page(self, relative_path: str, error: PipelineError) -> Path:
        """Write the inline error page at the output path of ``relative_path``."""
        template = self.environment.get_template(ERROR_PAGE_TEMPLATE)
        html = template.render(
            kind=error.kind, path=error.path or relative_path, message=error.message
        )
        target = self.context.output_dir / derive_output_path(relative_path)
        return write_atomic(target, html)

    def _render_one(
        self, relative_path: str, hrefs: cabc.Mapping[str, str]
    ) -> PageOutcome:
        failure = self.failures.get(relative_path)
        if failure is None:
            source = self.sources[relative_path]
            try:
                html = self.composer.render(
                    source,
                    self.chain_for(source),
                    self.navigation,
                    self._require_assets(),
                    hrefs,
                )
            except BuildIOError:
                raise
            except PipelineError as exc:
                failure = exc.with_path(relative_path)
            else:
                target = self.context.output_dir / source.output_path
                logger.debug("Rendered %s -> %s", relative_path, target)
                return PageOutcome(relative_path, output=write_atomic(target, html))
        if self.context.dev:
            output = self.write_error_page(relative_path, failure)
            return PageOutcome(relative_path, output=output, error=failure)
        return PageOutcome(relative_path, error=failure)

    def _require_assets(self) -> AssetLookup:
        if self.assets is None:
            msg = "Assets must be prepared before rendering."
            raise PipelineError(msg)
        return self.assets

    def _check_duplicate_outputs(self) -> None:
        owners: dict[str, list[str]] = collections.defaultdict(list)
        for key in sorted({*self.sources, *self.failures}):
            owners[derive_output_path(key)].append(key)
        clashes = {output: keys for output, keys in owners.items() if len(keys) > 1}
        if clashes:
            output, keys = next(iter(sorted(clashes.items())))
            msg = f"Sources {', '.join(keys)} all render to {output}."
            raise PipelineError(msg, path=keys[0])

    def _enter(self, state: BuildState) -> None:
        self.state = state
        logger.debug("Build state: %s", state.value)


def build_site(context: BuildContext) -> BuildReport:
    """Run one production or development pass for ``context``."""
    return SiteBuilder(context).build()


__all__ = [
    "BuildReport",
    "BuildState",
    "PageOutcome",
    "SiteBuilder",
    "build_site",
]
