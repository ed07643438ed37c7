"""Sitemap discovery and crawl-list generation for site audits."""

from sitemapaudit.config import DiscoverySettings, load_settings
from sitemapaudit.models import DiscoveryResult, IndexNode, LeafNode, SiteOrigin
from sitemapaudit.services.discover import DiscoveryService, summarize_structure

__version__ = "0.1.0"

__all__ = [
    "DiscoveryResult",
    "DiscoveryService",
    "DiscoverySettings",
    "IndexNode",
    "LeafNode",
    "SiteOrigin",
    "load_settings",
    "summarize_structure",
]
