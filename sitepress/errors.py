"""Error taxonomy shared by every stage of the sitepress pipeline.

Each error carries a machine-distinguishable ``kind`` and, when known, the
content path (relative to the articles directory) of the page that failed.
The build orchestrator catches :class:`PipelineError` at its per-file boundary
so one broken page never aborts the rest of a production build.

Examples
--------
>>> from sitepress.errors import ValidationError
>>> err = ValidationError("Front-matter requires a non-empty 'title'.", path="a.md")
>>> err.kind
'ValidationError'
>>> str(err)
"a.md: Front-matter requires a non-empty 'title'."
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for failures raised while assembling a site."""

    kind = "PipelineError"

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message

    def with_path(self, path: str) -> PipelineError:
        """Return this error tagged with ``path`` unless it already has one."""
        if self.path is None:
            self.path = path
        return self


class FrontmatterError(PipelineError):
    """Raised when a front-matter block is malformed."""

    kind = "FrontmatterError"


class ValidationError(PipelineError):
    """Raised when front-matter is missing a required field."""

    kind = "ValidationError"


class LayoutResolutionError(PipelineError):
    """Raised when no layout is reachable for a content directory."""

    kind = "LayoutResolutionError"


class RenderError(PipelineError):
    """Raised when a layout or templated page fails while rendering."""

    kind = "RenderError"


class AssetNotFoundError(PipelineError):
    """Raised when a page references an asset that was never prepared."""

    kind = "AssetNotFoundError"

    def __init__(self, asset_name: str, *, path: str | None = None) -> None:
        super().__init__(f"Unknown asset '{asset_name}'.", path=path)
        self.asset_name = asset_name


class BuildIOError(PipelineError):
    """Raised when reading inputs or writing outputs fails."""

    kind = "IOError"


__all__ = [
    "AssetNotFoundError",
    "BuildIOError",
    "FrontmatterError",
    "LayoutResolutionError",
    "PipelineError",
    "RenderError",
    "ValidationError",
]
