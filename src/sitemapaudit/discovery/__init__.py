"""Sitemap discovery for site audits.

This package locates sitemaps through robots.txt, fetches them and expands
sitemap indexes into a tree of page URLs.
"""

from sitemapaudit.discovery.fetcher import ContentFetcher, decompress_gzip
from sitemapaudit.discovery.robots import (
    SitemapLocator,
    extract_sitemaps,
    parse_robots_for_sitemaps,
    scan_bytes_for_sitemaps,
)
from sitemapaudit.discovery.sitemap import (
    IndexDoc,
    SitemapDocument,
    SitemapExpander,
    Unrecognized,
    UrlSetDoc,
    parse_sitemap_document,
)

__all__ = [
    # Fetcher
    "ContentFetcher",
    "decompress_gzip",
    # Locator
    "SitemapLocator",
    "extract_sitemaps",
    "parse_robots_for_sitemaps",
    "scan_bytes_for_sitemaps",
    # Expander
    "IndexDoc",
    "SitemapDocument",
    "SitemapExpander",
    "Unrecognized",
    "UrlSetDoc",
    "parse_sitemap_document",
]
