"""
Asset manifest: local path -> asset pending download.

The manifest is filled while an export is rewritten and later consumed by the
download stage. It can be persisted as JSON Lines, one record per asset.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, MutableMapping


DEFAULT_MANIFEST_NAME = "asset-manifest.jsonl"

logger = logging.getLogger(__name__)


@dataclass
class AssetManifestEntry:
    local_path: str          # Build-relative, no leading slash
    source_url: str          # Original CMS URL
    is_asset_from_cms: bool = True
    contents: bytes = b""    # Filled by the download stage

    def to_record(self) -> Dict[str, Any]:
        return {
            'local_path': self.local_path,
            'source_url': self.source_url,
            'is_asset_from_cms': self.is_asset_from_cms,
            'size': len(self.contents),
        }


def register_asset(manifest: MutableMapping[str, AssetManifestEntry],
                   local_path: str, source_url: str) -> AssetManifestEntry:
    """
    Add or replace the entry for local_path.

    A later source URL for the same local path wins.
    """
    previous = manifest.get(local_path)
    if previous is not None and previous.source_url != source_url:
        logger.debug(f"Replacing source for {local_path}: {previous.source_url} -> {source_url}")

    entry = AssetManifestEntry(local_path=local_path, source_url=source_url)
    manifest[local_path] = entry
    return entry


class AssetManifest(dict):
    """A dict of AssetManifestEntry keyed by local path, with persistence."""

    def pending(self) -> List[AssetManifestEntry]:
        """Entries whose contents have not been fetched yet."""
        return [entry for entry in self.values() if not entry.contents]

    def write_jsonl(self, output_dir: str) -> str:
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, DEFAULT_MANIFEST_NAME)
        with open(path, 'w', encoding='utf-8') as f:
            for local_path in sorted(self):
                f.write(json.dumps(self[local_path].to_record(), ensure_ascii=False) + "\n")
        return path

    @staticmethod
    def iter_records(path: str) -> Iterable[Dict[str, Any]]:
        if not os.path.exists(path):
            return
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    yield json.loads(line)
                except json.JSONDecodeError:
                    logger.warning(f"Skipping malformed manifest line in {path}")
                    continue

    @classmethod
    def load(cls, path: str) -> "AssetManifest":
        """Rebuild a manifest (without contents) from a JSON Lines file."""
        manifest = cls()
        for rec in cls.iter_records(path):
            local_path = rec.get('local_path')
            source_url = rec.get('source_url')
            if not local_path or not source_url:
                continue
            manifest[local_path] = AssetManifestEntry(
                local_path=local_path,
                source_url=source_url,
                is_asset_from_cms=bool(rec.get('is_asset_from_cms', True)),
            )
        return manifest
