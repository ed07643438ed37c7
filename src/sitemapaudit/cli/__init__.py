"""Command-line interface for sitemapaudit.

Commands:

- locate: List candidate sitemap URLs for a site
- discover: Expand sitemaps and write the crawl list
"""

# Import command modules to register them with the app
from sitemapaudit.cli import discover  # noqa: F401
from sitemapaudit.cli._common import app

__all__ = ["app"]
