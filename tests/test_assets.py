"""Tests for asset fingerprinting, dev cache-busting, and cache policies."""

from __future__ import annotations

import hashlib
import typing as typ

import pytest

from sitepress.assets import (
    DEV_POLICY,
    FINGERPRINTED_ASSET_POLICY,
    HTML_POLICY,
    AssetPipeline,
    CacheControl,
    fingerprint_bytes,
    prepare_assets,
)
from sitepress.errors import AssetNotFoundError

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """Return an assets directory with a stylesheet and a nested icon."""
    root = tmp_path / "assets"
    (root / "icons").mkdir(parents=True)
    (root / "site.css").write_text("body { margin: 0; }\n", encoding="utf-8")
    (root / "icons" / "logo.svg").write_text("<svg/>", encoding="utf-8")
    (root / ".DS_Store").write_bytes(b"junk")
    return root


def test_production_names_embed_content_hash(assets_dir: Path, tmp_path: Path) -> None:
    """Production filenames carry the first eight hex digits of the SHA-256."""
    output = tmp_path / "_site"
    lookup = prepare_assets(assets_dir, output, dev=False, base_path="/docs/")

    digest = hashlib.sha256(b"body { margin: 0; }\n").hexdigest()[:8]
    assert lookup("site.css") == f"/docs/__assets/site-{digest}.css"
    assert (output / "__assets" / f"site-{digest}.css").read_text(encoding="utf-8")
    assert lookup("icons/logo.svg").startswith("/docs/__assets/icons/logo-")
    assert ".DS_Store" not in lookup
    assert len(lookup) == 2


def test_fingerprint_is_stable_across_passes(assets_dir: Path, tmp_path: Path) -> None:
    """Unchanged content keeps its URL between builds."""
    pipeline = AssetPipeline(assets_dir, tmp_path / "_site")

    assert pipeline.prepare()("site.css") == pipeline.prepare()("site.css")
    assert fingerprint_bytes(b"abc") == hashlib.sha256(b"abc").hexdigest()[:8]


def test_dev_urls_use_increasing_cache_buster(assets_dir: Path, tmp_path: Path) -> None:
    """Dev mode keeps filenames and appends a strictly increasing token."""
    output = tmp_path / "_site"
    pipeline = AssetPipeline(assets_dir, output, dev=True)

    first = pipeline.prepare()
    second = pipeline.prepare()

    assert first("site.css").startswith("/__assets/site.css?v=")
    assert int(second.token) > int(first.token)
    assert (output / "__assets" / "site.css").exists()


def test_generated_assets_are_published(assets_dir: Path, tmp_path: Path) -> None:
    """Build-generated payloads are fingerprinted like files on disk."""
    lookup = prepare_assets(
        assets_dir, tmp_path / "_site", generated={"codehilite.css": b".codehilite {}"}
    )

    digest = fingerprint_bytes(b".codehilite {}")
    assert lookup("codehilite.css") == f"/__assets/codehilite-{digest}.css"


def test_unknown_asset_names_requesting_page(assets_dir: Path, tmp_path: Path) -> None:
    """A missing asset raises AssetNotFoundError tagged with the page path."""
    lookup = prepare_assets(assets_dir, tmp_path / "_site")

    with pytest.raises(AssetNotFoundError) as excinfo:
        lookup.bound_to("guide/intro.md")("missing.png")

    assert excinfo.value.asset_name == "missing.png"
    assert excinfo.value.path == "guide/intro.md"
    assert excinfo.value.kind == "AssetNotFoundError"


def test_missing_assets_dir_yields_empty_lookup(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """An absent assets directory is tolerated with a warning."""
    lookup = prepare_assets(tmp_path / "nope", tmp_path / "_site")

    assert len(lookup) == 0
    assert "No assets directory" in caplog.text


def test_cache_policies() -> None:
    """Fingerprinted assets are immutable; HTML and dev always revalidate."""
    assert FINGERPRINTED_ASSET_POLICY.header_value() == (
        "public, max-age=31536000, immutable"
    )
    assert HTML_POLICY.header_value() == "public, max-age=0, must-revalidate"
    assert "immutable" not in DEV_POLICY.header_value()
    assert "max-age=31536000" not in DEV_POLICY.header_value()


def test_cache_control_directive_order() -> None:
    """Directives are emitted in a fixed order regardless of construction."""
    policy = CacheControl(
        stale_if_error=60,
        private=True,
        s_maxage=10,
        no_store=True,
        stale_while_revalidate=30,
    )

    assert policy.header_value() == (
        "private, no-store, s-maxage=10, stale-while-revalidate=30, stale-if-error=60"
    )


def test_lookup_reports_policy_for_mode(assets_dir: Path, tmp_path: Path) -> None:
    """Each lookup knows which caching policy applies to its URLs."""
    production = prepare_assets(assets_dir, tmp_path / "prod")
    development = prepare_assets(assets_dir, tmp_path / "dev", dev=True)

    assert production.cache_control() is FINGERPRINTED_ASSET_POLICY
    assert development.cache_control() is DEV_POLICY
