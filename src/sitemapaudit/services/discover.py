"""Discovery service: locate, fetch and expand a site's sitemaps."""

import logging
import re
from typing import AsyncGenerator
from urllib.parse import urlsplit

import httpx

from sitemapaudit.config import DiscoverySettings
from sitemapaudit.discovery.fetcher import ContentFetcher
from sitemapaudit.discovery.robots import SitemapLocator
from sitemapaudit.discovery.sitemap import SitemapExpander
from sitemapaudit.exceptions import SitemapAuditError
from sitemapaudit.models import (
    DiscoveryEvent,
    DiscoveryResult,
    IndexNode,
    LeafNode,
    SiteOrigin,
    StructureSummary,
    collect_leaves,
)

LOGGER = logging.getLogger(__name__)

# Language codes recognised in sitemap file names, e.g. "post-sitemap_fr_1.xml"
_LANGUAGE_PATTERN = re.compile(
    r"[_\-/](en|fr|es|de|it|pt|ru|zh|ja|ko|ar|nl|sv|no|fi|da|pl|tr|cs|hu|ro|bg|el|he|th|vi|id|ms|hi|bn|uk|fa)[_\-./]",
    re.IGNORECASE,
)

# Content type -> file name keywords
_CONTENT_TYPE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "blog": ("blog", "news"),
    "products": ("product", "catalog"),
    "images": ("image",),
    "videos": ("video",),
}


class DiscoveryService:
    """Discover every page URL a site publishes through its sitemaps.

    Usage (streaming with progress):
        service = DiscoveryService(settings)
        async for event in service.discover("https://example.com"):
            if event.type == "sitemap":
                print(event.message)
            elif event.type == "complete":
                result = event.result
                print(len(result.urls))

    Usage (one shot):
        result = await DiscoveryService().discover_all("https://example.com")
    """

    def __init__(
        self,
        settings: DiscoverySettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise discovery service.

        Args:
            settings: Discovery settings (defaults are used if None)
            client: Optional shared httpx client, passed to the fetcher
        """
        self._settings = settings or DiscoverySettings()
        self._client = client

    def _fetcher(self) -> ContentFetcher:
        return ContentFetcher(self._settings, client=self._client)

    async def locate(self, url: str) -> list[str]:
        """Return candidate sitemap URLs for the site of ``url``."""
        async with self._fetcher() as fetcher:
            return await SitemapLocator(fetcher).locate(url)

    async def discover(self, url: str) -> AsyncGenerator[DiscoveryEvent, None]:
        """Discover a site's sitemaps and page URLs, yielding progress events.

        Sitemaps are expanded one at a time, in the order they were located.

        Args:
            url: Any absolute URL on the site

        Yields:
            DiscoveryEvent for each phase:
            - locate: once candidate sitemaps are known
            - sitemap: after each root sitemap is expanded
            - complete: final event with DiscoveryResult
            - error: if the URL is unusable
        """
        try:
            origin = SiteOrigin.from_url(url)
        except SitemapAuditError as e:
            LOGGER.error("Cannot discover sitemaps for %s: %s", url, e.message)
            yield DiscoveryEvent(type="error", message=e.message, details=e.context)
            return

        async with self._fetcher() as fetcher:
            locator = SitemapLocator(fetcher)
            expander = SitemapExpander(fetcher, max_depth=self._settings.max_depth)

            sitemaps = await locator.locate(origin)
            yield DiscoveryEvent(
                type="locate",
                total=len(sitemaps),
                message=f"Found {len(sitemaps)} sitemap candidate(s) for {origin.url}",
            )

            roots: list[LeafNode | IndexNode] = []
            discovered = 0
            for index, sitemap_url in enumerate(sitemaps, start=1):
                node = await expander.expand(sitemap_url)
                roots.append(node)
                found = sum(len(leaf.urls) for leaf in collect_leaves(node))
                discovered += found
                yield DiscoveryEvent(
                    type="sitemap",
                    discovered=index,
                    total=len(sitemaps),
                    message=f"{sitemap_url}: {found} URLs",
                )

        result = DiscoveryResult.from_roots(origin.url, sitemaps, roots)
        LOGGER.info(
            "Discovered %d URLs from %d sitemap(s) for %s (%d ambiguous)",
            discovered,
            len(sitemaps),
            origin.url,
            len(result.ambiguous()),
        )
        yield DiscoveryEvent(
            type="complete",
            discovered=len(result.urls),
            total=len(result.urls),
            result=result,
        )

    async def discover_all(self, url: str) -> DiscoveryResult:
        """Run discovery to completion.

        Raises:
            SitemapAuditError: If the URL is not an absolute HTTP(S) URL.
        """
        async for event in self.discover(url):
            if event.type == "complete" and event.result is not None:
                return event.result
            if event.type == "error":
                raise SitemapAuditError(event.message or "Discovery failed", context=event.details)
        raise SitemapAuditError("Discovery ended without a result", context={"url": url})


def _walk(node: LeafNode | IndexNode) -> list[LeafNode | IndexNode]:
    nodes: list[LeafNode | IndexNode] = [node]
    if isinstance(node, IndexNode):
        for child in node.children:
            nodes.extend(_walk(child))
    return nodes


def summarize_structure(result: DiscoveryResult) -> StructureSummary:
    """
    Describe the shape of a discovered sitemap tree.

    Languages and content types are guessed from sitemap file names,
    e.g. ``/fr/blog-sitemap.xml`` -> language ``fr``, content type ``blog``.

    Args:
        result: Completed discovery result.

    Returns:
        StructureSummary for the tree.
    """
    nodes = [node for root in result.roots for node in _walk(root)]
    languages: list[str] = []
    content_types: list[str] = []

    for node in nodes:
        if node.url in result.sitemaps:
            continue
        path = urlsplit(node.url).path.lower()
        match = _LANGUAGE_PATTERN.search(path)
        if match and match.group(1).lower() not in languages:
            languages.append(match.group(1).lower())
        for content_type, keywords in _CONTENT_TYPE_KEYWORDS.items():
            if content_type not in content_types and any(keyword in path for keyword in keywords):
                content_types.append(content_type)

    leaves = [node for node in nodes if isinstance(node, LeafNode)]
    return StructureSummary(
        index_count=len(nodes) - len(leaves),
        leaf_count=len(leaves),
        ambiguous_count=sum(1 for leaf in leaves if leaf.ambiguous),
        url_count=len(result.urls),
        languages=languages,
        content_types=content_types,
        is_multilingual=len(languages) > 1,
        has_separate_content_types=bool(content_types),
    )
