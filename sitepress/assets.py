"""Copy static assets into the output tree and resolve their public URLs.

Production builds embed a content fingerprint in every asset filename
(``favicon.svg`` becomes ``__assets/favicon-3f2a9c1e.svg``) so the files can be
served with a long-lived, immutable ``Cache-Control`` directive. Development
builds keep the original filenames and append a monotonically increasing
cache-buster token to each URL instead, so browsers always refetch after a
rebuild.

Example
-------
>>> from pathlib import Path
>>> lookup = prepare_assets(Path("assets"), Path("_site"), dev=False)  # doctest: +SKIP
>>> lookup("favicon.svg")  # doctest: +SKIP
'/__assets/favicon-3f2a9c1e.svg'
"""

from __future__ import annotations

import dataclasses as dc
import hashlib
import logging
import threading
import time
import types
import typing as typ
from pathlib import Path, PurePosixPath

from ._constants import ASSETS_DIR_NAME, FINGERPRINT_LENGTH
from .errors import AssetNotFoundError, BuildIOError
from .output import write_atomic

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = logging.getLogger(__name__)

ONE_YEAR_SECONDS = 31_536_000


@dc.dataclass(slots=True, frozen=True)
class CacheControl:
    """Structured ``Cache-Control`` directive.

    Examples
    --------
    >>> CacheControl(public=True, max_age=60, immutable=True).header_value()
    'public, max-age=60, immutable'
    """

    max_age: int | None = None
    s_maxage: int | None = None
    no_cache: bool = False
    no_store: bool = False
    no_transform: bool = False
    must_revalidate: bool = False
    proxy_revalidate: bool = False
    private: bool = False
    public: bool = False
    immutable: bool = False
    stale_while_revalidate: int | None = None
    stale_if_error: int | None = None

    def header_value(self) -> str:
        """Return the directive string for a ``Cache-Control`` header."""
        values: list[str] = []
        if self.public:
            values.append("public")
        if self.private:
            values.append("private")
        if self.no_cache:
            values.append("no-cache")
        if self.no_store:
            values.append("no-store")
        if self.no_transform:
            values.append("no-transform")
        if self.max_age is not None:
            values.append(f"max-age={self.max_age}")
        if self.s_maxage is not None:
            values.append(f"s-maxage={self.s_maxage}")
        if self.must_revalidate:
            values.append("must-revalidate")
        if self.proxy_revalidate:
            values.append("proxy-revalidate")
        if self.immutable:
            values.append("immutable")
        if self.stale_while_revalidate is not None:
            values.append(f"stale-while-revalidate={self.stale_while_revalidate}")
        if self.stale_if_error is not None:
            values.append(f"stale-if-error={self.stale_if_error}")
        return ", ".join(values)


FINGERPRINTED_ASSET_POLICY = CacheControl(
    public=True, max_age=ONE_YEAR_SECONDS, immutable=True
)
HTML_POLICY = CacheControl(public=True, max_age=0, must_revalidate=True)
DEV_POLICY = CacheControl(no_cache=True, no_store=True, must_revalidate=True)


@dc.dataclass(slots=True, frozen=True)
class AssetRecord:
    """One prepared asset.

    Attributes
    ----------
    name : str
        Logical name relative to the assets directory (``icons/logo.svg``).
    output_path : str
        POSIX path of the copy relative to the output directory.
    url : str
        Public URL, including the dev cache-buster when applicable.
    fingerprint : str
        Content hash prefix (production) or cache-buster token (dev).
    """

    name: str
    output_path: str
    url: str
    fingerprint: str


class AssetLookup:
    """Frozen mapping from logical asset names to cache-busted URLs."""

    def __init__(
        self, records: cabc.Mapping[str, AssetRecord], *, dev: bool, token: str
    ) -> None:
        self._records = types.MappingProxyType(dict(records))
        self.dev = dev
        self.token = token

    def __call__(self, name: str, *, page: str | None = None) -> str:
        """Return the URL for ``name``.

        Raises
        ------
        AssetNotFoundError
            If ``name`` was not prepared; tagged with ``page`` when given.
        """
        record = self._records.get(name.lstrip("/"))
        if record is None:
            raise AssetNotFoundError(name, path=page)
        return record.url

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lstrip("/") in self._records

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> cabc.Mapping[str, AssetRecord]:
        """Return the read-only record mapping."""
        return self._records

    def bound_to(self, page: str) -> cabc.Callable[[str], str]:
        """Return a lookup whose failures identify the requesting ``page``."""

        def _lookup(name: str) -> str:
            return self(name, page=page)

        return _lookup

    def cache_control(self) -> CacheControl:
        """Return the caching policy that applies to the prepared assets."""
        return DEV_POLICY if self.dev else FINGERPRINTED_ASSET_POLICY


class AssetPipeline:
    """Prepare assets for one output tree across repeated build passes."""

    def __init__(
        self,
        assets_dir: Path,
        output_dir: Path,
        *,
        base_path: str = "/",
        dev: bool = False,
    ) -> None:
        self.assets_dir = assets_dir
        self.output_dir = output_dir
        self.base_path = base_path
        self.dev = dev
        self._last_token = 0
        self._lock = threading.Lock()

    def prepare(
        self, generated: cabc.Mapping[str, bytes] | None = None
    ) -> AssetLookup:
        """Copy every asset into the output tree and return a frozen lookup.

        Parameters
        ----------
        generated : Mapping[str, bytes], optional
            Build-generated assets (such as the code highlighting stylesheet)
            published under the given logical names alongside the files found
            in the assets directory.

        Returns
        -------
        AssetLookup
            Lookup valid for the rest of the build pass.

        Raises
        ------
        BuildIOError
            If an asset cannot be read or written.
        """
        token = self._next_token()
        payloads = dict(self._read_assets())
        for name, data in (generated or {}).items():
            payloads.setdefault(name, data)

        records: dict[str, AssetRecord] = {}
        for name in sorted(payloads):
            data = payloads[name]
            fingerprint = token if self.dev else fingerprint_bytes(data)
            output_path = self._output_path(name, fingerprint)
            write_atomic(self.output_dir / output_path, data)
            url = f"{self.base_path}{output_path}"
            if self.dev:
                url = f"{url}?v={token}"
            records[name] = AssetRecord(
                name=name, output_path=output_path, url=url, fingerprint=fingerprint
            )
        logger.info("Prepared %d assets", len(records))
        return AssetLookup(records, dev=self.dev, token=token)

    def _read_assets(self) -> cabc.Iterator[tuple[str, bytes]]:
        if not self.assets_dir.is_dir():
            logger.warning("No assets directory found at %s, skipping", self.assets_dir)
            return
        for path in sorted(self.assets_dir.rglob("*")):
            if not path.is_file() or path.name.startswith("."):
                continue
            name = path.relative_to(self.assets_dir).as_posix()
            try:
                yield name, path.read_bytes()
            except OSError as exc:
                msg = f"Unable to read asset: {exc}"
                raise BuildIOError(msg, path=name) from exc

    def _output_path(self, name: str, fingerprint: str) -> str:
        relative = PurePosixPath(ASSETS_DIR_NAME) / name
        if self.dev:
            return str(relative)
        hashed = f"{relative.stem}-{fingerprint}{relative.suffix}"
        return str(relative.with_name(hashed))

    def _next_token(self) -> str:
        """Return a cache-buster strictly greater than the previous one."""
        with self._lock:
            now = time.time_ns() // 1_000_000
            self._last_token = max(now, self._last_token + 1)
            return str(self._last_token)


def fingerprint_bytes(data: bytes) -> str:
    """Return the short content fingerprint embedded in asset filenames."""
    return hashlib.sha256(data).hexdigest()[:FINGERPRINT_LENGTH]


def prepare_assets(
    assets_dir: Path,
    output_dir: Path,
    dev: bool = False,
    *,
    base_path: str = "/",
    generated: cabc.Mapping[str, bytes] | None = None,
) -> AssetLookup:
    """Prepare assets in one call; see :meth:`AssetPipeline.prepare`."""
    pipeline = AssetPipeline(assets_dir, output_dir, base_path=base_path, dev=dev)
    return pipeline.prepare(generated)


__all__ = [
    "DEV_POLICY",
    "FINGERPRINTED_ASSET_POLICY",
    "HTML_POLICY",
    "AssetLookup",
    "AssetPipeline",
    "AssetRecord",
    "CacheControl",
    "fingerprint_bytes",
    "prepare_assets",
]
