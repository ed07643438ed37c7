"""Utility functions for sitemapaudit."""

import logging
from typing import Any
from urllib.parse import urlsplit

from sitemapaudit.exceptions import generate_correlation_id

LOGGER = logging.getLogger(__name__)

# Bytes sampled by is_textual; large sitemaps are not scanned in full
TEXT_SAMPLE_SIZE = 64 * 1024

# Fraction of printable bytes above which content counts as text
TEXT_THRESHOLD = 0.8

# Whitespace control characters that appear in any real text file
_TEXT_CONTROL_BYTES = frozenset({0x09, 0x0A, 0x0D})


def log_with_correlation(
    logger: logging.Logger,
    level: int,
    message: str,
    correlation_id: str | None = None,
    **kwargs: Any,
) -> None:
    """
    Log a message with correlation ID and additional context.

    Args:
        logger: Logger instance to use.
        level: Logging level (e.g., logging.INFO, logging.ERROR).
        message: Log message format string.
        correlation_id: Optional correlation ID. If None, generates a new one.
        **kwargs: Additional context to include in log extra fields.
    """
    corr_id = correlation_id or generate_correlation_id()
    extra = {"correlation_id": corr_id, **kwargs}
    logger.log(level, message, extra=extra)


def is_textual(data: bytes, sample_size: int = TEXT_SAMPLE_SIZE) -> bool:
    """
    Guess whether a payload is text rather than binary or compressed data.

    Content is textual when more than 80% of the sampled bytes are printable
    ASCII (32-126, plus tab, CR and LF). Empty input is textual.

    Args:
        data: Raw payload.
        sample_size: Number of leading bytes to inspect.

    Returns:
        True if the payload looks like text.
    """
    sample = data[:sample_size]
    if not sample:
        return True
    printable = sum(1 for byte in sample if 32 <= byte <= 126 or byte in _TEXT_CONTROL_BYTES)
    return printable / len(sample) > TEXT_THRESHOLD


def content_prefix(data: bytes, length: int = 200) -> str:
    """
    Render the start of a payload for diagnostics.

    Args:
        data: Raw payload.
        length: Number of bytes to show.

    Returns:
        Printable representation of the first ``length`` bytes.
    """
    return repr(data[:length])


def host_slug(url: str) -> str:
    """
    Turn a URL's host into a folder-safe slug.

    Strips a leading ``www.`` and replaces dots with underscores,
    e.g. ``https://www.example.co.uk/x`` -> ``example_co_uk``.

    Args:
        url: Absolute URL.

    Returns:
        Slug derived from the hostname.
    """
    hostname = urlsplit(url).hostname or ""
    return hostname.removeprefix("www.").replace(".", "_")
