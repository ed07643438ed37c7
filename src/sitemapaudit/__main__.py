"""Allow ``python -m sitemapaudit``."""

from sitemapaudit.cli import app

if __name__ == "__main__":
    app()
