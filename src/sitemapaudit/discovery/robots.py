"""Sitemap location via robots.txt.

robots.txt ``Sitemap:`` directives are read first; conventional paths are
used when the file is missing or declares nothing.
"""

import logging
import re

from sitemapaudit.discovery.fetcher import ContentFetcher
from sitemapaudit.exceptions import FetchError
from sitemapaudit.models import SiteOrigin, SitemapReference
from sitemapaudit.utils import is_textual

LOGGER = logging.getLogger(__name__)

# Conventional locations when robots.txt is unreachable
FALLBACK_SITEMAP_PATHS = ["/sitemap.xml", "/sitemap_index.xml"]

# Single location when robots.txt is reachable but declares no sitemaps
DEFAULT_SITEMAP_PATH = "/sitemap.xml"

_SITEMAP_DIRECTIVE = re.compile(rb"Sitemap:\s*(https?://[^\s<>\"'\x00-\x1f\x7f-\xff]+)", re.IGNORECASE)


def parse_robots_for_sitemaps(robots_content: str) -> list[SitemapReference]:
    """
    Extract Sitemap URLs from robots.txt content.

    Args:
        robots_content: The content of robots.txt.

    Returns:
        Sitemap URLs in the order they appear.
    """
    sitemaps: list[SitemapReference] = []
    for line in robots_content.splitlines():
        line = line.strip()
        if line.lower().startswith("sitemap:"):
            sitemap_url = line.split(":", 1)[1].strip()
            if sitemap_url:
                sitemaps.append(sitemap_url)
    return sitemaps


def scan_bytes_for_sitemaps(data: bytes) -> list[SitemapReference]:
    """
    Find ``Sitemap: <url>`` declarations in content that is not clean text.

    Args:
        data: Raw robots.txt payload, possibly compressed or garbled.

    Returns:
        Sitemap URLs in the order they appear.
    """
    return [match.decode("ascii", errors="ignore") for match in _SITEMAP_DIRECTIVE.findall(data)]


def extract_sitemaps(data: bytes) -> list[SitemapReference]:
    """Pick the line parser or the byte scanner depending on the payload."""
    if is_textual(data):
        return parse_robots_for_sitemaps(data.decode("utf-8", errors="replace"))
    LOGGER.debug("robots.txt does not look like text, scanning raw bytes")
    return scan_bytes_for_sitemaps(data)


class SitemapLocator:
    """
    Determine candidate sitemap URLs for a site.

    Usage:
        async with ContentFetcher(settings) as fetcher:
            locator = SitemapLocator(fetcher)
            sitemaps = await locator.locate("https://example.com")
    """

    def __init__(self, fetcher: ContentFetcher) -> None:
        self._fetcher = fetcher

    async def locate(self, origin: SiteOrigin | str) -> list[SitemapReference]:
        """
        Locate sitemaps for an origin. Never raises for network reasons.

        Args:
            origin: Site origin, or any URL on the site.

        Returns:
            Non-empty list of sitemap URLs.
        """
        if isinstance(origin, str):
            origin = SiteOrigin.from_url(origin)

        robots_url = origin.resolve("/robots.txt")
        LOGGER.info("Checking %s for sitemap declarations", robots_url)

        try:
            result = await self._fetcher.fetch(robots_url)
        except FetchError as e:
            LOGGER.info("Could not fetch robots.txt: %s", e.message)
            return [origin.resolve(path) for path in FALLBACK_SITEMAP_PATHS]

        sitemaps = extract_sitemaps(result.raw_bytes)
        if not sitemaps:
            LOGGER.info("No sitemap declared in robots.txt, using %s", DEFAULT_SITEMAP_PATH)
            return [origin.resolve(DEFAULT_SITEMAP_PATH)]

        LOGGER.info("Found %d sitemap(s) in robots.txt", len(sitemaps))
        return sitemaps
