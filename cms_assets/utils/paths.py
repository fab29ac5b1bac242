"""
Asset Path Classification

This module decides whether strings found in a CMS export refer to assets
hosted on the CMS, and maps those URLs to build-relative local paths.
"""

import posixpath
import re
from typing import Optional


DEFAULT_CMS_DOMAIN = "cms.va.gov"

IMAGE_EXTENSIONS = ('png', 'jpg', 'jpeg', 'gif', 'svg')

# Host labels as they appear on CMS environments, e.g. "prod.cms.va.gov"
# or "pr-1234-abc.ci.cms.va.gov"
_HOST_LABELS = r'([a-z0-9]+(-[a-z0-9]+)*\.)+'


class AssetPathClassifier:
    """
    Classifies and normalizes asset URLs for a single CMS domain.

    Only hosts of the form ``<labels>.<cms_domain>`` are recognized. Any
    other host is treated as off-domain and passed through unchanged.
    """

    def __init__(self, cms_domain: str = DEFAULT_CMS_DOMAIN):
        """
        Args:
            cms_domain: Domain suffix of the CMS, e.g. "cms.va.gov"
        """
        if not cms_domain:
            raise ValueError("cms_domain cannot be empty")

        self.cms_domain = cms_domain
        escaped = re.escape(cms_domain)

        self.files_prefix_pattern = re.compile(
            r'^https?://' + _HOST_LABELS + escaped + r'/sites/.*/files/'
        )
        self.host_pattern = re.compile(
            r'^https?://' + _HOST_LABELS + escaped, re.IGNORECASE
        )
        self.files_segment_pattern = re.compile(r'/sites/.*/files/')
        self.site_marker = f"{cms_domain}/sites"

    def normalize_asset_path(self, url: str) -> str:
        """
        Compute the local path for an asset URL.

        Args:
            url: Raw asset URL or path taken from the export

        Returns:
            "/img/..." for images, "/files/..." for anything else, or the
            input unchanged if it is still an absolute URL after stripping
            the CMS prefix
        """
        asset_path = self.files_prefix_pattern.sub('', url, count=1)

        # Off-domain absolute URLs are left alone
        if asset_path.startswith('http'):
            return asset_path

        path = asset_path.split('?', 1)[0]

        if self.is_image(path):
            return f"/img/{path}"

        return f"/files/{path}"

    def is_image(self, path: str) -> bool:
        ext = posixpath.splitext(path)[1].lstrip('.').lower()
        return ext in IMAGE_EXTENSIONS

    def is_cms_asset_reference(self, value: str) -> bool:
        """True if the value contains a /sites/<name>/files/ segment anywhere."""
        return self.files_segment_pattern.search(value) is not None

    def is_cms_hosted_url(self, value: str) -> bool:
        """True if the value is an absolute URL on a CMS host."""
        return self.host_pattern.match(value) is not None

    def mentions_cms_site(self, value: Optional[str]) -> bool:
        return bool(value) and self.site_marker in value


_singleton_classifier: Optional[AssetPathClassifier] = None


def get_classifier() -> AssetPathClassifier:
    """Return a singleton classifier for the default CMS domain."""
    global _singleton_classifier
    if _singleton_classifier is None:
        _singleton_classifier = AssetPathClassifier()
    return _singleton_classifier


def normalize_asset_path(url: str) -> str:
    return get_classifier().normalize_asset_path(url)


def is_cms_asset_reference(value: str) -> bool:
    return get_classifier().is_cms_asset_reference(value)


def is_cms_hosted_url(value: str) -> bool:
    return get_classifier().is_cms_hosted_url(value)
