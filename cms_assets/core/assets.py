"""
Asset reference conversion and download.

This module rewrites CMS asset URLs found in an exported content tree to
local build paths, records every rewritten asset in a manifest, and fetches
the queued assets for the build. Rich-text fields are parsed as HTML so that
`href`/`src` attributes inside them are rewritten the same way as bare URL
strings elsewhere in the tree.
"""

from __future__ import annotations

import re
import time
import logging
from typing import Any, Dict, List, MutableMapping, Optional
from urllib.parse import unquote

import requests
from bs4 import BeautifulSoup

from .tree_rewriter import TreeRewriter
from ..utils.manifest import AssetManifestEntry, register_asset
from ..utils.paths import AssetPathClassifier, get_classifier


DEFAULT_RICH_CONTENT_KEY = "processed"

# Attributes rewritten inside rich content, in processing order
REWRITTEN_ATTRIBUTES = ('href', 'src')

HTML_TAG_PATTERN = re.compile(r'</?[a-z][\s\S]*>', re.IGNORECASE)
DOCUMENT_TAG_PATTERN = re.compile(r'<(html|head|body)[\s>]', re.IGNORECASE)


def manifest_key(local_path: str) -> str:
    """URL-decode a local path and drop its leading slash."""
    decoded = unquote(local_path)
    if decoded.startswith('/'):
        return decoded[1:]
    return decoded


class AssetManifestBuilder:
    def __init__(self,
                 classifier: Optional[AssetPathClassifier] = None,
                 rich_content_key: str = DEFAULT_RICH_CONTENT_KEY,
                 html_parser: str = "html.parser"):
        self.logger = logging.getLogger(__name__)
        self.classifier = classifier or get_classifier()
        self.rich_content_key = rich_content_key
        self.html_parser = html_parser
        self.rewriter = TreeRewriter()

    def convert_asset_references(self, tree: Any,
                                 manifest: MutableMapping[str, AssetManifestEntry]) -> Any:
        """
        Rewrite asset URLs in tree and register them in manifest.

        Args:
            tree: Exported content (dicts, lists and scalars, possibly cyclic)
            manifest: Mapping of local path -> AssetManifestEntry, updated in place

        Returns:
            The rewritten tree. The input tree is left untouched.
        """
        before = len(manifest)

        def transform(value: str, key: Optional[str]) -> str:
            # Markup in the rich content field also contains /sites/.../files/,
            # so it has to reach the attribute pass before the bare URL check
            if key == self.rich_content_key and HTML_TAG_PATTERN.search(value):
                return self._convert_rich_content(value, manifest)
            if self.classifier.is_cms_asset_reference(value):
                return self._convert_asset_string(value, manifest)
            return value

        result = self.rewriter.rewrite(tree, transform)
        self.logger.info(f"Converted asset references: {len(manifest) - before} new manifest entries "
                         f"({len(manifest)} total)")
        return result

    def _convert_asset_string(self, value: str, manifest: MutableMapping[str, AssetManifestEntry]) -> str:
        new_path = self.classifier.normalize_asset_path(value)
        local_path = manifest_key(new_path)

        # The loose /sites/.../files/ match also hits relative paths and
        # markup; only absolute CMS URLs with a plausible filename are queued.
        if self.classifier.is_cms_hosted_url(value) and not HTML_TAG_PATTERN.search(local_path):
            register_asset(manifest, local_path, value)
            self.logger.debug(f"Queued asset {local_path} from {value}")

        return new_path

    def _convert_rich_content(self, html: str, manifest: MutableMapping[str, AssetManifestEntry]) -> str:
        soup = BeautifulSoup(html, self.html_parser)

        rewritten = []
        for attr in REWRITTEN_ATTRIBUTES:
            rewritten.extend(self._update_attr(soup, attr))

        if not rewritten:
            return html

        for source_url, new_path in rewritten:
            register_asset(manifest, manifest_key(new_path), source_url)
            self.logger.debug(f"Queued rich content asset {new_path} from {source_url}")

        # Parsers like lxml wrap fragments in <html><head><body> and hoist
        # leading <style>/<link>/<meta> into <head>; keep fragments as fragments
        if soup.html is not None and not DOCUMENT_TAG_PATTERN.search(html):
            return ''.join(part.decode_contents() for part in (soup.head, soup.body) if part is not None)
        return str(soup)

    def _update_attr(self, soup: BeautifulSoup, attr: str) -> List[tuple]:
        """Rewrite one attribute on every matching element, returning (source, new_path) pairs."""
        rewritten = []
        for el in soup.find_all(attrs={attr: self.classifier.mentions_cms_site}):
            source_url = el.get(attr)
            new_path = self.classifier.normalize_asset_path(source_url)
            # Still absolute: not a recognized CMS host, nothing to localize
            if new_path.startswith('http'):
                continue
            el[attr] = new_path
            rewritten.append((source_url, new_path))
        return rewritten


_default_builder: Optional[AssetManifestBuilder] = None


def convert_asset_references(tree: Any, manifest: MutableMapping[str, AssetManifestEntry]) -> Any:
    """Rewrite tree with the default builder (cms.va.gov, "processed" rich content)."""
    global _default_builder
    if _default_builder is None:
        _default_builder = AssetManifestBuilder()
    return _default_builder.convert_asset_references(tree, manifest)


class AssetDownloader:
    def __init__(self, request_delay: float = 0.5, max_retries: int = 2, timeout: float = 30.0,
                 session: Optional[requests.Session] = None, error_tracker=None):
        self.logger = logging.getLogger(__name__)
        self.request_delay = request_delay
        self.max_retries = max_retries
        self.timeout = timeout
        self.error_tracker = error_tracker
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'cms-asset-localizer/0.1 (AssetDownloader)'
        })

    def fetch(self, manifest: MutableMapping[str, AssetManifestEntry]) -> Dict[str, int]:
        """
        Fill the contents of every manifest entry that has none yet.

        Failed downloads are logged and counted; they never raise.

        Returns:
            Counters: {"downloaded": n, "failed": n}
        """
        stats = {"downloaded": 0, "failed": 0}
        pending = [entry for entry in manifest.values() if not entry.contents]
        self.logger.info(f"Fetching {len(pending)} assets")

        for idx, entry in enumerate(pending):
            if idx and self.request_delay > 0:
                time.sleep(self.request_delay)
            content = self._get(entry.source_url)
            if content is None:
                stats["failed"] += 1
                continue
            entry.contents = content
            stats["downloaded"] += 1
            self.logger.debug(f"Fetched {entry.local_path} ({len(content)} bytes)")

        return stats

    def _get(self, url: str) -> Optional[bytes]:
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay = self.request_delay * (2 ** attempt)  # Exponential backoff
                if delay > 0:
                    self.logger.info(f"Retry {attempt} for {url} after {delay:.1f}s delay")
                    time.sleep(delay)
            try:
                resp = self.session.get(url, timeout=self.timeout)
                resp.raise_for_status()
                return resp.content
            except requests.RequestException as e:
                last_error = e
                self.logger.debug(f"Attempt {attempt + 1} failed for {url}: {e}")

        self.logger.warning(f"Failed to download asset: {url} ({last_error})")
        if self.error_tracker:
            self.error_tracker.log_warning(str(last_error), context="asset download", url=url)
        return None
