"""Service layer for sitemapaudit."""

from sitemapaudit.services.discover import DiscoveryService, summarize_structure

__all__ = ["DiscoveryService", "summarize_structure"]
