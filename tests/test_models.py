"""Tests for data models."""

import pytest

from sitemapaudit.exceptions import ValidationError
from sitemapaudit.models import DiscoveryResult, IndexNode, LeafNode, SiteOrigin, collect_leaves


class TestSiteOrigin:
    """Tests for SiteOrigin."""

    def test_from_url_drops_path_and_trailing_slash(self) -> None:
        origin = SiteOrigin.from_url("https://Example.com/some/page/?q=1#top")
        assert origin.url == "https://example.com"

    def test_keeps_www_for_requests(self) -> None:
        origin = SiteOrigin.from_url("https://www.example.com/")
        assert origin.resolve("/robots.txt") == "https://www.example.com/robots.txt"

    def test_same_site_ignores_www(self) -> None:
        origin = SiteOrigin.from_url("https://www.example.com")
        assert origin.same_site("http://example.com/page")
        assert not origin.same_site("https://shop.example.com")

    @pytest.mark.parametrize("url", ["example.com", "ftp://example.com/", "https://", ""])
    def test_rejects_non_http_urls(self, url: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SiteOrigin.from_url(url)
        assert exc_info.value.context["field"] == "url"


class TestCollectLeaves:
    """Tests for collect_leaves."""

    def test_single_leaf(self) -> None:
        leaf = LeafNode(url="https://x.com/a.xml")
        assert collect_leaves(leaf) == [leaf]

    def test_nested_index_in_document_order(self) -> None:
        first = LeafNode(url="https://x.com/1.xml")
        second = LeafNode(url="https://x.com/2.xml", ambiguous=True)
        third = LeafNode(url="https://x.com/3.xml")
        tree = IndexNode(
            url="https://x.com/index.xml",
            children=[IndexNode(url="https://x.com/sub.xml", children=[first, second]), third],
        )

        assert collect_leaves(tree) == [first, second, third]

    def test_empty_index_has_no_leaves(self) -> None:
        assert collect_leaves(IndexNode(url="https://x.com/index.xml")) == []


class TestDiscoveryResult:
    """Tests for DiscoveryResult."""

    @pytest.fixture
    def roots(self) -> list[LeafNode | IndexNode]:
        return [
            IndexNode(
                url="https://x.com/index.xml",
                children=[
                    LeafNode(url="https://x.com/p1.xml", urls=["https://x.com/a", "https://x.com/b"]),
                    LeafNode(url="https://x.com/p2.xml", ambiguous=True, error="boom"),
                    IndexNode(
                        url="https://x.com/nested.xml",
                        children=[LeafNode(url="https://x.com/p3.xml", urls=["https://x.com/a"])],
                    ),
                ],
            ),
            LeafNode(url="https://x.com/extra.xml", urls=["https://x.com/c"]),
        ]

    def test_flattens_depth_first_keeping_duplicates(self, roots) -> None:
        result = DiscoveryResult.from_roots("https://x.com", ["https://x.com/index.xml"], roots)
        assert result.urls == ["https://x.com/a", "https://x.com/b", "https://x.com/a", "https://x.com/c"]

    def test_leaves_and_ambiguous(self, roots) -> None:
        result = DiscoveryResult.from_roots("https://x.com", [], roots)
        assert [leaf.url for leaf in result.leaves()] == [
            "https://x.com/p1.xml",
            "https://x.com/p2.xml",
            "https://x.com/p3.xml",
            "https://x.com/extra.xml",
        ]
        assert [leaf.url for leaf in result.ambiguous()] == ["https://x.com/p2.xml"]

    def test_json_round_trip_keeps_node_kinds(self, roots) -> None:
        result = DiscoveryResult.from_roots("https://x.com", [], roots)
        restored = DiscoveryResult.model_validate_json(result.model_dump_json())

        assert isinstance(restored.roots[0], IndexNode)
        assert isinstance(restored.roots[0].children[2], IndexNode)
        assert restored == result
