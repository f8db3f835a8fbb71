"""Cyclopts CLI entrypoint for building sitepress sites.

The ``sitepress`` console script defined here runs a one-shot production
build (``sitepress build``) or a watching development loop
(``sitepress dev``) for the site described by a ``site.yaml`` file. Every
option can also be supplied through ``INPUT_*`` environment variables, which
keeps the commands usable from CI actions.

Examples
--------
Build the site described by ``site.yaml`` in the working directory:

>>> from sitepress.cli import main
>>> main()  # doctest: +SKIP

Build into a custom directory under a path prefix:

>>> from sitepress.cli import app
>>> app(["build", "--output-dir", "dist", "--base-path", "/docs/"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .builder import SiteBuilder
from .config import load_build_context
from .errors import PipelineError
from .watcher import watch

if typ.TYPE_CHECKING:
    from .builder import BuildReport
    from .config import BuildContext

DEFAULT_CONFIG = Path("site.yaml")

app = App(name="sitepress", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_context(
    config: Path,
    *,
    output_dir: Path | None,
    base_path: str | None,
    workers: int | None,
    dev: bool,
) -> BuildContext:
    return load_build_context(
        config,
        output_dir=output_dir.absolute() if output_dir else None,
        base_path=base_path,
        workers=workers,
        dev=dev,
    )


def _report(report: BuildReport) -> None:
    for path in report.written:
        print(f"wrote {_format_path(path)}")
    for error in report.errors:
        print(f"error[{error.kind}] {error.path or '-'}: {error.message}")
    print(f"{report.pages} pages written, {len(report.errors)} errors")


@app.command(help="Build the site once for production.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="INPUT_OUTPUT_DIR"),
    ] = None,
    base_path: typ.Annotated[
        str | None,
        Parameter(help="Override the URL prefix", env_var="INPUT_BASE_PATH"),
    ] = None,
    workers: typ.Annotated[
        int | None,
        Parameter(help="Render worker count", env_var="INPUT_WORKERS"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log per-file detail", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Run one production build and report every written file and error.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``INPUT_CONFIG``).
    output_dir : Path or None, optional
        Override for the configured output directory.
    base_path : str or None, optional
        Override for the configured URL prefix.
    workers : int or None, optional
        Override for the render worker pool size.
    verbose : bool, optional
        Enable debug logging.

    Raises
    ------
    SystemExit
        With status 1 when any page failed or the build aborted.
    """
    _configure_logging(verbose)
    context = _load_context(
        config, output_dir=output_dir, base_path=base_path, workers=workers, dev=False
    )
    try:
        report = SiteBuilder(context).build()
    except PipelineError as exc:
        print(f"error[{exc.kind}] {exc.path or '-'}: {exc.message}")
        raise SystemExit(1) from exc
    _report(report)
    if not report.ok:
        raise SystemExit(1)


@app.command(help="Build in development mode and rebuild on every change.")
def dev(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="INPUT_OUTPUT_DIR"),
    ] = None,
    base_path: typ.Annotated[
        str | None,
        Parameter(help="Override the URL prefix", env_var="INPUT_BASE_PATH"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log per-file detail", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Watch the content, layout, and asset roots and rebuild incrementally.

    Failing pages are replaced by an inline error page and the watch loop
    keeps running; press Ctrl+C to stop.

    Raises
    ------
    SystemExit
        With status 1 when the initial pass aborts.
    """
    _configure_logging(verbose)
    context = _load_context(
        config, output_dir=output_dir, base_path=base_path, workers=None, dev=True
    )
    try:
        session = watch(context)
    except PipelineError as exc:
        print(f"error[{exc.kind}] {exc.path or '-'}: {exc.message}")
        raise SystemExit(1) from exc
    print(f"stopped after {session.generation} passes")


def main() -> None:
    """Invoke the Cyclopts application that powers the `sitepress` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
