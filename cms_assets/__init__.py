"""
CMS Asset Localizer

Rewrites CMS-hosted asset URLs in exported content to local build paths and
collects a manifest of the assets the build has to fetch.
"""

__version__ = "0.1.0"
__author__ = "CMS Asset Localizer Project"
__description__ = "CMS export asset localizer"
