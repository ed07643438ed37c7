"""Data models for sitemapaudit."""

from typing import Annotated, Any, Literal, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field

from sitemapaudit.exceptions import ValidationError

# A URL believed to point to a sitemap or sitemap index.
SitemapReference = str


class SiteOrigin(BaseModel):
    """Scheme and host of the audited site.

    Usage:
        origin = SiteOrigin.from_url("https://www.example.com/some/page")
        origin.url  # "https://www.example.com"
    """

    model_config = ConfigDict(frozen=True)

    scheme: str
    host: str

    @classmethod
    def from_url(cls, url: str) -> "SiteOrigin":
        """Derive the origin from any absolute HTTP(S) URL.

        Args:
            url: Absolute URL (path, query and fragment are ignored).

        Returns:
            SiteOrigin for the URL.

        Raises:
            ValidationError: If the URL has no HTTP(S) scheme or no host.
        """
        parts = urlsplit(url.strip())
        if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
            raise ValidationError(
                f"Not an absolute HTTP(S) URL: {url!r}",
                field="url",
                value=url,
            )
        return cls(scheme=parts.scheme.lower(), host=parts.netloc.lower())

    @property
    def url(self) -> str:
        """Origin URL without trailing slash."""
        return f"{self.scheme}://{self.host}"

    @property
    def bare_host(self) -> str:
        """Host with a leading ``www.`` removed, for comparison only."""
        return self.host.removeprefix("www.")

    def same_site(self, other: "SiteOrigin | str") -> bool:
        """Compare two origins ignoring scheme and a leading ``www.``."""
        if isinstance(other, str):
            other = SiteOrigin.from_url(other)
        return self.bare_host == other.bare_host

    def resolve(self, path: str) -> str:
        """Build an absolute URL for a root-relative path on this origin."""
        return f"{self.url}/{path.lstrip('/')}"


class FetchResult(BaseModel):
    """Body and metadata of one completed fetch."""

    model_config = ConfigDict(frozen=True)

    raw_bytes: bytes
    final_url: str
    status_code: int = 200
    content_encoding: str | None = None

    @property
    def text(self) -> str:
        """Body decoded as UTF-8, undecodable bytes replaced."""
        return self.raw_bytes.decode("utf-8", errors="replace")


class LeafNode(BaseModel):
    """A urlset sitemap and the page URLs it lists.

    ``ambiguous`` marks sitemaps whose type could not be determined, either
    because they failed to fetch or because the XML was not recognised.
    """

    kind: Literal["leaf"] = "leaf"
    url: str
    urls: list[str] = Field(default_factory=list)
    ambiguous: bool = False
    error: str | None = None


class IndexNode(BaseModel):
    """A sitemap index and its expanded children, in document order."""

    kind: Literal["index"] = "index"
    url: str
    children: list["SitemapNode"] = Field(default_factory=list)


SitemapNode = Annotated[Union[LeafNode, IndexNode], Field(discriminator="kind")]

IndexNode.model_rebuild()


def collect_leaves(node: LeafNode | IndexNode) -> list[LeafNode]:
    """Collect leaves depth-first in document order."""
    if isinstance(node, LeafNode):
        return [node]
    leaves: list[LeafNode] = []
    for child in node.children:
        leaves.extend(collect_leaves(child))
    return leaves


class DiscoveryResult(BaseModel):
    """Outcome of one discovery run.

    ``urls`` is every page URL of every leaf, flattened depth-first in
    document order. Duplicates across sitemaps are kept.
    """

    origin: str
    sitemaps: list[SitemapReference] = Field(default_factory=list)
    roots: list[SitemapNode] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)

    @classmethod
    def from_roots(cls, origin: str, sitemaps: list[str], roots: list[LeafNode | IndexNode]) -> "DiscoveryResult":
        """Build a result and its flattened URL list from expanded roots."""
        urls: list[str] = []
        for root in roots:
            for leaf in collect_leaves(root):
                urls.extend(leaf.urls)
        return cls(origin=origin, sitemaps=list(sitemaps), roots=list(roots), urls=urls)

    def leaves(self) -> list[LeafNode]:
        """All leaf nodes across every root."""
        leaves: list[LeafNode] = []
        for root in self.roots:
            leaves.extend(collect_leaves(root))
        return leaves

    def ambiguous(self) -> list[LeafNode]:
        """Leaves that failed to fetch or parse."""
        return [leaf for leaf in self.leaves() if leaf.ambiguous]


class StructureSummary(BaseModel):
    """Shape of a site's sitemap tree."""

    index_count: int = 0
    leaf_count: int = 0
    ambiguous_count: int = 0
    url_count: int = 0
    languages: list[str] = Field(default_factory=list)
    content_types: list[str] = Field(default_factory=list)
    is_multilingual: bool = False
    has_separate_content_types: bool = False


class DiscoveryEvent(BaseModel):
    """Progress event emitted during discovery.

    Types:
        - locate: sitemap candidates determined
        - sitemap: one root sitemap expanded
        - complete: final event with the DiscoveryResult
        - error: discovery could not start
    """

    type: Literal["locate", "sitemap", "complete", "error"]
    message: str | None = None
    discovered: int | None = None
    total: int | None = None
    result: DiscoveryResult | None = None
    details: dict[str, Any] | None = None
