"""Sitemap parsing and recursive index expansion.

A fetched document is classified once, at parse time, as a sitemap index,
a urlset or something unrecognised. Indexes are expanded child by child,
in document order, and failures are recorded in the tree instead of raised.
"""

import codecs
import logging
from dataclasses import dataclass
from typing import TypeAlias
from xml.etree import ElementTree

from sitemapaudit.discovery.fetcher import ContentFetcher
from sitemapaudit.exceptions import FetchError, ParseError, generate_correlation_id
from sitemapaudit.models import IndexNode, LeafNode
from sitemapaudit.utils import content_prefix, log_with_correlation

LOGGER = logging.getLogger(__name__)

# Index nesting limit when none is configured
DEFAULT_MAX_DEPTH = 5


@dataclass(frozen=True)
class IndexDoc:
    """A ``<sitemapindex>`` document: locations of child sitemaps."""

    locs: tuple[str, ...]


@dataclass(frozen=True)
class UrlSetDoc:
    """A ``<urlset>`` document: page locations."""

    locs: tuple[str, ...]


@dataclass(frozen=True)
class Unrecognized:
    """Malformed XML or an unknown root element."""

    reason: str


SitemapDocument: TypeAlias = IndexDoc | UrlSetDoc | Unrecognized


def _strip_namespace(tag: str) -> str:
    """Remove XML namespace from tag name."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _parse_xml(content: bytes) -> ElementTree.Element:
    """Parse XML bytes, tolerating a BOM and leading whitespace."""
    data = content.removeprefix(codecs.BOM_UTF8).lstrip()
    try:
        return ElementTree.fromstring(data)
    except ElementTree.ParseError as e:
        raise ParseError(f"Malformed XML: {e}", context={"size": len(content)}) from e


def _child_locs(root: ElementTree.Element, entry_tag: str) -> tuple[str, ...]:
    """Collect ``<loc>`` text of every ``entry_tag`` child, in order."""
    locs: list[str] = []
    for entry in root:
        if _strip_namespace(entry.tag) != entry_tag:
            continue
        for field in entry:
            if _strip_namespace(field.tag) == "loc" and field.text and field.text.strip():
                locs.append(field.text.strip())
                break
    return tuple(locs)


def parse_sitemap_document(content: bytes) -> SitemapDocument:
    """
    Classify and parse a sitemap document.

    Namespaces are ignored, so documents that omit or misdeclare the
    sitemaps.org namespace are still recognised.

    Args:
        content: Raw XML bytes.

    Returns:
        IndexDoc, UrlSetDoc or Unrecognized.
    """
    try:
        root = _parse_xml(content)
    except ParseError as e:
        return Unrecognized(reason=e.message)

    tag_name = _strip_namespace(root.tag)
    if tag_name == "sitemapindex":
        return IndexDoc(locs=_child_locs(root, "sitemap"))
    if tag_name == "urlset":
        return UrlSetDoc(locs=_child_locs(root, "url"))
    return Unrecognized(reason=f"Unknown sitemap root element: {tag_name}")


class SitemapExpander:
    """
    Expand a sitemap URL into a tree of index and leaf nodes.

    Usage:
        async with ContentFetcher(settings) as fetcher:
            expander = SitemapExpander(fetcher, max_depth=settings.max_depth)
            node = await expander.expand("https://example.com/sitemap_index.xml")
    """

    def __init__(self, fetcher: ContentFetcher, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """
        Initialise the expander.

        Args:
            fetcher: Content fetcher used for every sitemap.
            max_depth: Maximum depth of nested sitemap indexes.
        """
        self._fetcher = fetcher
        self._max_depth = max_depth

    async def expand(self, sitemap_url: str) -> LeafNode | IndexNode:
        """
        Fetch and expand one sitemap. Never raises.

        Args:
            sitemap_url: URL of a sitemap or sitemap index.

        Returns:
            IndexNode for indexes, LeafNode for urlsets, and an ambiguous
            empty LeafNode for anything that failed to fetch or parse.
        """
        return await self._expand(sitemap_url, depth=0, ancestors=frozenset())

    async def _expand(self, sitemap_url: str, depth: int, ancestors: frozenset[str]) -> LeafNode | IndexNode:
        if depth > self._max_depth:
            LOGGER.warning("Max sitemap depth reached at %s", sitemap_url)
            return _ambiguous(sitemap_url, f"Sitemap nesting deeper than {self._max_depth}")
        if sitemap_url in ancestors:
            LOGGER.warning("Sitemap index cycle at %s", sitemap_url)
            return _ambiguous(sitemap_url, "Sitemap index references itself")

        LOGGER.info("Fetching sitemap: %s", sitemap_url)
        try:
            result = await self._fetcher.fetch_with_retry(sitemap_url)
        except FetchError as e:
            LOGGER.error("Error fetching sitemap %s: %s", sitemap_url, e.message)
            return _ambiguous(sitemap_url, e.message)

        document = parse_sitemap_document(result.raw_bytes)

        if isinstance(document, IndexDoc):
            LOGGER.info("Sitemap index with %d child sitemaps: %s", len(document.locs), sitemap_url)
            children: list[LeafNode | IndexNode] = []
            for loc in document.locs:
                children.append(await self._expand(loc, depth + 1, ancestors | {sitemap_url}))
            return IndexNode(url=sitemap_url, children=children)

        if isinstance(document, UrlSetDoc):
            LOGGER.info("Found %d URLs in %s", len(document.locs), sitemap_url)
            return LeafNode(url=sitemap_url, urls=list(document.locs))

        log_with_correlation(
            LOGGER,
            logging.WARNING,
            f"Could not determine sitemap type for {sitemap_url} ({document.reason}); "
            f"content starts with {content_prefix(result.raw_bytes)}",
            correlation_id=generate_correlation_id(),
            url=sitemap_url,
        )
        return _ambiguous(sitemap_url, document.reason)


def _ambiguous(sitemap_url: str, error: str) -> LeafNode:
    """An empty leaf for a sitemap whose type could not be determined."""
    return LeafNode(url=sitemap_url, ambiguous=True, error=error)
