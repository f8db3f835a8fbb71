"""Development mode: incremental rebuilds driven by filesystem events.

:class:`DevSession` keeps the builder's pass state alive between passes and
re-runs only the steps whose inputs changed:

- a content file is re-read and re-rendered, and every page is re-rendered
  when the navigation model changed as a result;
- a layout file re-renders the pages whose layout chain includes it (the
  document template re-renders everything);
- an asset file re-prepares the assets with a fresh cache-buster token and
  re-renders every page.

:func:`watch` wires a session to a watchdog observer through a
:class:`ChangeDebouncer`, so a burst of saves collapses into one pass that
reads the latest file contents.
"""

from __future__ import annotations

import logging
import os
import threading
import typing as typ
from pathlib import Path, PurePosixPath

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ._constants import (
    DOCUMENT_TEMPLATE_OVERRIDE,
    LAYOUT_PREFIX,
    LAYOUT_SUFFIX,
    WATCHER_DEBOUNCE_SECONDS,
)
from .builder import BuildReport, SiteBuilder
from .content import derive_output_path, is_content_path
from .errors import PipelineError
from .output import remove_output

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config import BuildContext
    from .content import ContentSource

logger = logging.getLogger(__name__)

RELEVANT_EVENTS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}
)


class DevSession:
    """Hold pass state between development rebuilds."""

    def __init__(self, context: BuildContext) -> None:
        """Initialize a session; ``context.dev`` is forced on.

        Parameters
        ----------
        context : BuildContext
            Build configuration for the watched site.
        """
        self.context = context if context.dev else context.replace(dev=True)
        self.builder = SiteBuilder(self.context)
        self.generation = 0
        self._lock = threading.Lock()

    def start(self) -> BuildReport:
        """Run the initial full pass."""
        with self._lock:
            report = self.builder.build()
            self.generation += 1
            return report

    def apply_changes(self, paths: cabc.Iterable[Path]) -> BuildReport:
        """Re-run the pipeline for a batch of changed paths.

        Parameters
        ----------
        paths : Iterable[Path]
            Created, modified, or deleted files under any watched root.

        Returns
        -------
        BuildReport
            Report for the pages touched by this pass.

        Raises
        ------
        PipelineError
            For build-level failures such as a deleted root layout; the
            session state stays usable for the next batch.
        """
        with self._lock:
            report = BuildReport()
            content, layouts, partials, assets_changed = self._classify(paths)
            if not (content or layouts or partials or assets_changed):
                return report

            builder = self.builder
            render_all = False
            targets: set[str] = set()

            if assets_changed:
                logger.info("Assets changed; re-preparing")
                builder.prepare_assets()
                render_all = True

            if partials:
                logger.info("Templates changed: %s", ", ".join(sorted(partials)))
                render_all = True

            if layouts or partials:
                if layouts:
                    logger.info("Layouts changed: %s", ", ".join(sorted(layouts)))
                if DOCUMENT_TEMPLATE_OVERRIDE in layouts:
                    render_all = True
                before = self._chain_names()
                builder.layouts.refresh()
                builder.composer.refresh()
                builder.check_root_layout()
                after = self._chain_names()
                for key in builder.sources:
                    old, new = before.get(key), after.get(key)
                    if old is None or new is None or old != new or layouts & set(new):
                        targets.add(key)

            if content:
                logger.info("Content changed: %s", ", ".join(sorted(content)))
                linkable = set(builder.sources)
                targets |= self._reload_content(content, report)
                if builder.refresh_navigation():
                    logger.info("Navigation changed; re-rendering every page")
                    render_all = True
                elif set(builder.sources) != linkable:
                    logger.info("Link targets changed; re-rendering every page")
                    render_all = True

            known = {*builder.sources, *builder.failures}
            selected = known if render_all else targets & known
            builder.render(sorted(selected), report)
            if assets_changed:
                builder.write_site_files(report)
            self.generation += 1
            logger.info(
                "Pass %d re-rendered %d pages", self.generation, len(selected)
            )
            return report

    def _reload_content(self, content: set[str], report: BuildReport) -> set[str]:
        builder = self.builder
        articles_dir = self.context.articles_dir
        present: list[Path] = []
        for relative in sorted(content):
            path = articles_dir / relative
            if path.is_file():
                present.append(path)
            elif builder.forget(relative):
                target = self.context.output_dir / derive_output_path(relative)
                remove_output(target)
                logger.info("Removed %s", target)
        builder.load(present, report)
        return {path.relative_to(articles_dir).as_posix() for path in present}

    def _chain_names(self) -> dict[str, tuple[str, ...] | None]:
        names: dict[str, tuple[str, ...] | None] = {}
        for key, source in self.builder.sources.items():
            names[key] = self._safe_chain(source)
        return names

    def _safe_chain(self, source: ContentSource) -> tuple[str, ...] | None:
        try:
            chain = self.builder.chain_for(source)
        except PipelineError:
            return None
        return tuple(layout.template_name for layout in chain)

    def _classify(
        self, paths: cabc.Iterable[Path]
    ) -> tuple[set[str], set[str], set[str], bool]:
        """Split changed paths into content keys, layouts, partials and assets.

        Any other file under the layout root counts as a partial.
        """
        content: set[str] = set()
        layouts: set[str] = set()
        partials: set[str] = set()
        assets_changed = False
        ctx = self.context
        for path in paths:
            resolved = Path(path).absolute()
            if _is_within(resolved, ctx.output_dir.absolute()):
                continue
            if _is_within(resolved, ctx.assets_dir.absolute()):
                assets_changed = True
                continue
            layout_name = _relative(resolved, ctx.layout_dir.absolute())
            if layout_name is not None:
                if _is_layout_name(layout_name):
                    layouts.add(layout_name)
                else:
                    partials.add(layout_name)
                continue
            relative = _relative(resolved, ctx.articles_dir.absolute())
            if relative is not None and is_content_path(PurePosixPath(relative)):
                content.add(relative)
        return content, layouts, partials, assets_changed


class ChangeDebouncer:
    """Coalesce bursts of change notifications into single callbacks.

    Every :meth:`push` restarts the quiet-period timer. When it expires the
    accumulated paths are handed to ``callback`` in one batch. Callbacks never
    overlap; paths pushed while a callback runs form the next batch.
    """

    def __init__(
        self,
        callback: cabc.Callable[[set[Path]], object],
        delay: float = WATCHER_DEBOUNCE_SECONDS,
    ) -> None:
        self.callback = callback
        self.delay = delay
        self._pending: set[Path] = set()
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._pass_lock = threading.Lock()

    def push(self, path: Path) -> None:
        """Record ``path`` and restart the quiet-period timer."""
        with self._lock:
            self._pending.add(path)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> None:
        """Deliver pending paths now, waiting for any in-flight callback."""
        with self._pass_lock:
            with self._lock:
                batch, self._pending = self._pending, set()
                self._timer = None
            if batch:
                self.callback(batch)

    def cancel(self) -> None:
        """Drop pending paths once the in-flight callback, if any, finishes."""
        with self._pass_lock, self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending.clear()


class SourceChangeHandler(FileSystemEventHandler):
    """Forward relevant watchdog events to a :class:`ChangeDebouncer`."""

    def __init__(self, debouncer: ChangeDebouncer, *, ignore: Path) -> None:
        super().__init__()
        self.debouncer = debouncer
        self.ignore = ignore.absolute()

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Push the source and destination of file events."""
        if event.is_directory or event.event_type not in RELEVANT_EVENTS:
            return
        for raw in (event.src_path, getattr(event, "dest_path", "")):
            if not raw:
                continue
            path = Path(os.fsdecode(raw))
            if path.name.startswith(".") or _is_within(path.absolute(), self.ignore):
                continue
            self.debouncer.push(path)


def watch(
    context: BuildContext,
    *,
    stop: threading.Event | None = None,
    poll_interval: float = 0.5,
) -> DevSession:
    """Build once, then rebuild on every change until interrupted.

    Parameters
    ----------
    context : BuildContext
        Build configuration; development mode is forced on.
    stop : threading.Event, optional
        Set to end the loop; ``KeyboardInterrupt`` also ends it.
    poll_interval : float, optional
        Seconds between checks of ``stop``.

    Returns
    -------
    DevSession
        The session, for inspection after the loop ends.
    """
    session = DevSession(context)
    report = session.start()
    logger.info("Initial build wrote %d files", len(report.written))

    def _apply(batch: set[Path]) -> None:
        try:
            session.apply_changes(batch)
        except PipelineError as exc:
            logger.error("Rebuild failed: error[%s] %s", exc.kind, exc)  # noqa: TRY400

    debouncer = ChangeDebouncer(_apply)
    handler = SourceChangeHandler(debouncer, ignore=session.context.output_dir)
    observer = Observer()
    for root in _watch_roots(session.context):
        observer.schedule(handler, str(root), recursive=True)
        logger.info("Watching %s", root)
    observer.start()
    stop = stop or threading.Event()
    try:
        while not stop.is_set():
            stop.wait(poll_interval)
    except KeyboardInterrupt:
        logger.info("Stopping watcher")
    finally:
        observer.stop()
        observer.join()
        debouncer.cancel()
    return session


def _watch_roots(context: BuildContext) -> list[Path]:
    """Return existing roots to watch, skipping roots nested in another."""
    candidates = [context.articles_dir, context.layout_dir, context.assets_dir]
    roots: list[Path] = []
    for candidate in sorted({path.absolute() for path in candidates if path.is_dir()}):
        if not any(_is_within(candidate, root) for root in roots):
            roots.append(candidate)
    return roots


def _is_within(path: Path, root: Path) -> bool:
    return path == root or root in path.parents


def _relative(path: Path, root: Path) -> str | None:
    if not _is_within(path, root) or path == root:
        return None
    return path.relative_to(root).as_posix()


def _is_layout_name(relative: str) -> bool:
    name = PurePosixPath(relative).name
    if relative == DOCUMENT_TEMPLATE_OVERRIDE:
        return True
    return name.startswith(LAYOUT_PREFIX) and name.endswith(LAYOUT_SUFFIX)


__all__ = [
    "ChangeDebouncer",
    "DevSession",
    "SourceChangeHandler",
    "watch",
]
