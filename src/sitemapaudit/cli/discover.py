"""Sitemap location and discovery commands."""

import asyncio
import json
import sys
from pathlib import Path

import click

from sitemapaudit.cli._common import app, configure_logging, console
from sitemapaudit.config import DiscoverySettings, load_settings
from sitemapaudit.exceptions import SitemapAuditError


def _settings_or_exit(**overrides: object) -> DiscoverySettings:
    try:
        return load_settings(**overrides)
    except SitemapAuditError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(2) from e


@app.command("locate", help="List candidate sitemap URLs for a site.")
@click.argument("url")
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def locate_cmd(url: str, timeout: float | None, verbose: bool) -> None:
    """Print the sitemap URLs declared in robots.txt, or the conventional fallbacks.

    Examples:
        sitemapaudit locate https://example.com
    """
    from sitemapaudit.services.discover import DiscoveryService

    settings = _settings_or_exit(timeout=timeout)
    configure_logging(verbose=verbose, level=settings.log_level)

    try:
        sitemaps = asyncio.run(DiscoveryService(settings).locate(url))
    except SitemapAuditError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1) from e

    for sitemap_url in sitemaps:
        click.echo(sitemap_url)


@app.command("discover", help="Expand a site's sitemaps into a crawl list.")
@click.argument("url")
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Base output folder (default: results/sitemap, or SITEMAPAUDIT_OUTPUT_DIR).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Stdout format: text (summary) or json (full tree).",
)
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds.")
@click.option("--retries", type=int, default=None, help="Attempts per sitemap fetch.")
@click.option("--max-depth", type=int, default=None, help="Maximum sitemap index nesting.")
@click.option(
    "--curl/--no-curl",
    "curl_fallback",
    default=None,
    help="Retry binary payloads through curl --compressed.",
)
@click.option(
    "--limit",
    type=int,
    default=None,
    help="Write at most this many URLs to the crawl list.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def discover_cmd(
    url: str,
    output_dir: Path | None,
    output_format: str,
    timeout: float | None,
    retries: int | None,
    max_depth: int | None,
    curl_fallback: bool | None,
    limit: int | None,
    verbose: bool,
) -> None:
    """Discover every page URL listed in a site's sitemaps.

    Writes url_list.csv (one URL per line) and sitemap_tree.json into
    <output-dir>/sitemap_<domain>/.

    Examples:
        sitemapaudit discover https://example.com
        sitemapaudit discover https://example.com --limit 50 --no-curl
        sitemapaudit discover https://example.com --format json > tree.json
    """
    from sitemapaudit.output import (
        TREE_FILENAME,
        URL_LIST_FILENAME,
        prepare_output_folder,
        write_tree,
        write_url_list,
    )
    from sitemapaudit.services.discover import DiscoveryService, summarize_structure

    settings = _settings_or_exit(
        timeout=timeout,
        max_retries=retries,
        max_depth=max_depth,
        curl_fallback=curl_fallback,
        output_dir=output_dir,
    )
    configure_logging(verbose=verbose, level=settings.log_level)

    async def run():
        service = DiscoveryService(settings)
        result = None
        last_progress = ""

        async for event in service.discover(url):
            if event.type == "complete":
                result = event.result
                if last_progress and sys.stderr.isatty():
                    click.echo("\r" + " " * len(last_progress) + "\r", nl=False, err=True)
            elif event.type == "error":
                click.echo(f"Error: {event.message}", err=True)
                return None
            elif sys.stderr.isatty():
                if event.type == "sitemap":
                    progress = f"Sitemaps: {event.discovered}/{event.total}"
                else:
                    progress = event.message or ""
                click.echo(f"\r{progress:<60}", nl=False, err=True)
                last_progress = progress

        return result

    result = asyncio.run(run())
    if result is None:
        raise SystemExit(1)

    folder = prepare_output_folder(settings.output_dir, url)
    urls = result.urls if limit is None else result.urls[: max(0, limit)]
    list_path = write_url_list(folder / URL_LIST_FILENAME, urls)
    write_tree(folder / TREE_FILENAME, result)

    if output_format == "json":
        click.echo(json.dumps(result.model_dump(), indent=2))
    else:
        summary = summarize_structure(result)
        console.print(f"[bold]Sitemaps:[/bold] {', '.join(result.sitemaps)}")
        console.print(
            f"[bold]Tree:[/bold] {summary.index_count} index, {summary.leaf_count} leaf "
            f"({summary.ambiguous_count} ambiguous)"
        )
        if summary.languages:
            console.print(f"[bold]Languages:[/bold] {', '.join(summary.languages)}")
        if summary.content_types:
            console.print(f"[bold]Content types:[/bold] {', '.join(summary.content_types)}")
        for leaf in result.ambiguous():
            console.print(f"[yellow]Ambiguous:[/yellow] {leaf.url} ({leaf.error})")
        click.echo(f"Wrote {len(urls)} URLs to {list_path}")

    if not result.urls:
        click.echo("No URLs found in sitemap", err=True)
        raise SystemExit(1)
