"""Common CLI utilities and the main app group."""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

console = Console(stderr=True)
_configured = False


def configure_logging(*, verbose: bool = False, level: str = "INFO") -> None:
    """Configure logging with Rich handler. Call once at startup."""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
            )
        ],
        force=True,
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _configured = True


@click.group(help="Sitemap discovery for SEO and accessibility audits.")
def app() -> None:
    """
    Entry point for the sitemapaudit CLI.

    Provides commands for locating sitemaps and for expanding them into
    a crawl list for the external audit crawler.
    """
