"""Filesystem writes for build output.

Every file lands through :func:`write_atomic`: the payload is written to a
temporary sibling and moved over the target with :func:`os.replace`, so an
interrupted pass never leaves a half-written page behind.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

from .errors import BuildIOError


def write_atomic(path: Path, payload: str | bytes) -> Path:
    """Write ``payload`` to ``path`` atomically, creating parent directories.

    Raises
    ------
    BuildIOError
        If the directory cannot be created or the file cannot be written.
    """
    data = payload.encode("utf-8") if isinstance(payload, str) else payload
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise
    except OSError as exc:
        msg = f"Unable to write {path}: {exc}"
        raise BuildIOError(msg) from exc
    return path


def remove_output(path: Path) -> bool:
    """Delete a previously written output file; return True if it existed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        msg = f"Unable to remove {path}: {exc}"
        raise BuildIOError(msg) from exc
    return True


__all__ = ["remove_output", "write_atomic"]
