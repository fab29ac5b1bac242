#!/usr/bin/env python3
"""
Tests for the asset manifest and its JSON Lines persistence.
"""

import json
import sys
from pathlib import Path

import pytest

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from cms_assets.utils.manifest import (
    DEFAULT_MANIFEST_NAME,
    AssetManifest,
    AssetManifestEntry,
    register_asset,
)


def test_register_overwrites_previous_source():
    manifest = {}
    first = register_asset(manifest, "img/a.png", "https://a.cms.va.gov/sites/1/files/a.png")
    second = register_asset(manifest, "img/a.png", "https://b.cms.va.gov/sites/2/files/a.png")

    assert manifest["img/a.png"] is second
    assert first is not second
    assert second.source_url == "https://b.cms.va.gov/sites/2/files/a.png"
    assert second.is_asset_from_cms is True
    assert second.contents == b""


def test_pending_lists_unfetched_entries():
    manifest = AssetManifest()
    manifest["a"] = AssetManifestEntry("a", "https://x.cms.va.gov/sites/s/files/a")
    manifest["b"] = AssetManifestEntry("b", "https://x.cms.va.gov/sites/s/files/b", contents=b"1")
    assert [e.local_path for e in manifest.pending()] == ["a"]


def test_write_and_load_round_trip(tmp_path):
    manifest = AssetManifest()
    register_asset(manifest, "files/doc.pdf", "https://a.cms.va.gov/sites/s/files/doc.pdf")
    register_asset(manifest, "img/pic.png", "https://a.cms.va.gov/sites/s/files/pic.png")
    manifest["img/pic.png"].contents = b"12345"

    path = manifest.write_jsonl(str(tmp_path / "out"))
    assert Path(path).name == DEFAULT_MANIFEST_NAME

    records = [json.loads(line) for line in Path(path).read_text(encoding="utf-8").splitlines()]
    assert records[1] == {
        "local_path": "img/pic.png",
        "source_url": "https://a.cms.va.gov/sites/s/files/pic.png",
        "is_asset_from_cms": True,
        "size": 5,
    }

    loaded = AssetManifest.load(path)
    assert sorted(loaded) == ["files/doc.pdf", "img/pic.png"]
    # Contents are not persisted
    assert loaded["img/pic.png"].contents == b""


def test_load_skips_bad_lines(tmp_path):
    path = tmp_path / DEFAULT_MANIFEST_NAME
    path.write_text(
        '{"local_path": "files/a.pdf", "source_url": "https://a.cms.va.gov/sites/s/files/a.pdf"}\n'
        "not json\n"
        "\n"
        '{"local_path": "files/b.pdf"}\n',
        encoding="utf-8",
    )
    loaded = AssetManifest.load(str(path))
    assert list(loaded) == ["files/a.pdf"]


def test_load_missing_file(tmp_path):
    assert AssetManifest.load(str(tmp_path / "nope.jsonl")) == {}


if __name__ == "__main__":
    sys.exit(pytest.main([__file__]))
