"""Output files handed to the external crawler and report collaborators.

Layout:
    results/sitemap/
    |-- sitemap_example_com/
        |-- url_list.csv        # one page URL per line (crawl list)
        |-- sitemap_tree.json   # full DiscoveryResult
"""

import logging
from pathlib import Path

from sitemapaudit.models import DiscoveryResult
from sitemapaudit.utils import host_slug

LOGGER = logging.getLogger(__name__)

URL_LIST_FILENAME = "url_list.csv"
TREE_FILENAME = "sitemap_tree.json"


def site_folder_name(url: str, prefix: str = "sitemap") -> str:
    """
    Folder name for a site's results, e.g. ``sitemap_example_com``.

    Args:
        url: Any URL on the site.
        prefix: Audit type prefix.

    Returns:
        Folder name.
    """
    return f"{prefix}_{host_slug(url)}"


def prepare_output_folder(base_dir: Path, url: str, prefix: str = "sitemap") -> Path:
    """
    Create (or reuse) the per-site output folder.

    Args:
        base_dir: Parent folder for all sites.
        url: Any URL on the site.
        prefix: Audit type prefix.

    Returns:
        Absolute path of the folder.
    """
    folder = (base_dir / site_folder_name(url, prefix)).resolve()
    if folder.exists():
        LOGGER.info("Using existing output directory: %s", folder)
    else:
        folder.mkdir(parents=True, exist_ok=True)
        LOGGER.info("Created output directory: %s", folder)
    return folder


def write_url_list(path: Path, urls: list[str]) -> Path:
    """
    Write a line-delimited URL list, replacing any previous file.

    Args:
        path: Destination file.
        urls: Page URLs, written in order.

    Returns:
        The path written.
    """
    content = "".join(f"{url}\n" for url in urls)
    path.write_text(content, encoding="utf-8")
    LOGGER.info("Wrote %d URLs to %s", len(urls), path)
    return path


def read_url_list(path: Path) -> list[str]:
    """Read a URL list written by write_url_list, skipping blank lines."""
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def write_tree(path: Path, result: DiscoveryResult) -> Path:
    """
    Write the discovery tree as JSON.

    Args:
        path: Destination file.
        result: Discovery result to serialise.

    Returns:
        The path written.
    """
    path.write_text(result.model_dump_json(indent=2), encoding="utf-8")
    LOGGER.debug("Wrote sitemap tree to %s", path)
    return path
