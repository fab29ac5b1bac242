"""
Asset localization orchestrator: rewrites a CMS export and queues its assets.

Runs the stages in order: load export, convert asset references, save the
rewritten export and manifest, then optionally download and write assets.
"""

from __future__ import annotations

import json
import os
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .assets import AssetManifestBuilder, AssetDownloader, DEFAULT_RICH_CONTENT_KEY
from .logger import ErrorTracker
from ..utils.file_manager import BuildFileManager
from ..utils.manifest import AssetManifest
from ..utils.paths import AssetPathClassifier, DEFAULT_CMS_DOMAIN


@dataclass
class LocalizeConfig:
    export_path: str
    output_dir: str = "build"
    cms_domain: str = DEFAULT_CMS_DOMAIN
    rich_content_key: str = DEFAULT_RICH_CONTENT_KEY
    html_parser: str = "html.parser"
    download_assets: bool = False
    delay_secs: float = 0.5
    max_retries: int = 2
    timeout_secs: float = 30.0

    def validate(self) -> None:
        if not self.export_path:
            raise ValueError("export_path cannot be empty")
        if not self.cms_domain:
            raise ValueError("cms_domain cannot be empty")
        if not self.rich_content_key:
            raise ValueError("rich_content_key cannot be empty")
        if self.delay_secs < 0:
            raise ValueError("delay_secs must be >= 0")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.timeout_secs <= 0:
            raise ValueError("timeout_secs must be > 0")


class LocalizeController:
    def __init__(self, config: LocalizeConfig, logger: Optional[logging.Logger] = None,
                 downloader: Optional[AssetDownloader] = None):
        config.validate()
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.error_tracker = ErrorTracker(self.logger)
        self.builder = AssetManifestBuilder(
            classifier=AssetPathClassifier(config.cms_domain),
            rich_content_key=config.rich_content_key,
            html_parser=config.html_parser,
        )
        self.downloader = downloader or AssetDownloader(
            request_delay=config.delay_secs,
            max_retries=config.max_retries,
            timeout=config.timeout_secs,
            error_tracker=self.error_tracker,
        )
        self.files = BuildFileManager(config.output_dir)
        self.manifest = AssetManifest()

    def run(self, progress: Optional[Callable[[object], None]] = None) -> Dict[str, int]:
        """Run all stages and return counters."""
        stats = {"entries": 0, "downloaded": 0, "failed": 0, "written": 0}

        if progress:
            progress({"type": "stage", "stage": "loading", "path": self.config.export_path})
        with open(self.config.export_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if progress:
            progress({"type": "stage", "stage": "converting"})
        converted = self.builder.convert_asset_references(data, self.manifest)
        stats["entries"] = len(self.manifest)

        self.files.save_json(converted, os.path.basename(self.config.export_path))
        manifest_path = self.manifest.write_jsonl(self.config.output_dir)
        self.logger.info(f"Wrote {len(self.manifest)} manifest entries to {manifest_path}")

        if self.config.download_assets:
            if progress:
                progress({"type": "stage", "stage": "downloading", "total": len(self.manifest.pending())})
            fetched = self.downloader.fetch(self.manifest)
            stats["downloaded"] = fetched["downloaded"]
            stats["failed"] = fetched["failed"]

            for entry in self.manifest.values():
                if self.files.save_asset(entry):
                    stats["written"] += 1

            # Refresh manifest with fetched sizes
            self.manifest.write_jsonl(self.config.output_dir)

        if progress:
            progress({"type": "counters", "stats": stats})
        return stats
