"""
File Management Utilities

This module writes the outputs of an asset localization run into the build
directory: the rewritten export and the fetched asset files, each asset
stored under its manifest local path.
"""

import json
import os
import logging
from pathlib import Path
from typing import Any, Optional

from .manifest import AssetManifestEntry


class BuildFileManager:
    """
    Writes rewritten content and downloaded assets below a build root.

    Asset paths are taken from the manifest and are relative to the build
    root, which is also the site root the rewritten paths point at.
    """

    def __init__(self, base_output_dir: str = "build"):
        """
        Args:
            base_output_dir: Build root for all output files
        """
        self.base_output_dir = Path(base_output_dir)
        self.logger = logging.getLogger(__name__)

        self.base_output_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Build directory: {self.base_output_dir.absolute()}")

    def resolve(self, local_path: str) -> Optional[Path]:
        """
        Map a manifest local path to a file below the build root.

        Returns:
            The absolute target path, or None if it would escape the build root
        """
        root = self.base_output_dir.resolve()
        target = (root / local_path.lstrip('/')).resolve()
        if target == root or root not in target.parents:
            self.logger.warning(f"Refusing asset path outside build root: {local_path}")
            return None
        return target

    def save_json(self, data: Any, filename: str) -> Optional[str]:
        """
        Save rewritten content as JSON.

        Returns:
            Path to saved file, or None if save failed
        """
        path = self.base_output_dir / filename
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except (OSError, TypeError, ValueError) as e:
            self.logger.error(f"Failed to save {filename}: {e}")
            return None

        self.logger.info(f"Saved JSON ({os.path.getsize(path)} bytes): {path.name}")
        return str(path)

    def save_asset(self, entry: AssetManifestEntry) -> Optional[str]:
        """
        Write a fetched asset under its local path.

        Returns:
            Path to saved file, or None if the entry has no contents or the
            write failed
        """
        if not entry.contents:
            self.logger.debug(f"No contents for {entry.local_path}, skipping")
            return None

        target = self.resolve(entry.local_path)
        if target is None:
            return None

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'wb') as f:
                f.write(entry.contents)
        except OSError as e:
            self.logger.error(f"Failed to save asset {entry.local_path}: {e}")
            return None

        self.logger.debug(f"Saved asset ({len(entry.contents)} bytes): {entry.local_path}")
        return str(target)
