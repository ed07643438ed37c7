"""HTTP content retrieval for robots.txt and sitemap files.

Redirects are followed by hand with a hop limit. gzip bodies, flagged by
``content-encoding`` or by their magic bytes, are decompressed from the raw
stream. Payloads that still look binary get a second chance through
``curl --compressed``.
"""

import asyncio
import gzip
import logging
import zlib
from types import TracebackType
from urllib.parse import urljoin

import httpx

from sitemapaudit.config import DiscoverySettings
from sitemapaudit.exceptions import (
    DecodeError,
    FetchError,
    HttpStatusError,
    NetworkError,
    TooManyRedirectsError,
    generate_correlation_id,
)
from sitemapaudit.models import FetchResult
from sitemapaudit.utils import is_textual, log_with_correlation

LOGGER = logging.getLogger(__name__)

GZIP_ENCODINGS = frozenset({"gzip", "x-gzip"})

# First two bytes of every gzip member
GZIP_MAGIC = b"\x1f\x8b"


def decompress_gzip(data: bytes) -> bytes:
    """
    Decompress a gzip payload.

    Args:
        data: gzip-compressed bytes.

    Returns:
        Decompressed bytes.

    Raises:
        DecodeError: If the payload is not valid gzip.
    """
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise DecodeError(
            f"gzip decompression failed: {e}",
            context={"size": len(data)},
        ) from e


class ContentFetcher:
    """
    Fetch URL bodies with redirect, gzip, retry and curl fallback handling.

    Usage:
        async with ContentFetcher(settings) as fetcher:
            result = await fetcher.fetch_with_retry("https://example.com/sitemap.xml")
            print(result.text)

    A caller-supplied ``client`` is borrowed and never closed here.
    """

    def __init__(
        self,
        settings: DiscoverySettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialise the fetcher.

        Args:
            settings: Discovery settings (defaults are used if None).
            client: Optional shared httpx client.
        """
        self._settings = settings or DiscoverySettings()
        self._http_client = client
        self._owns_client = client is None
        self._sleep = asyncio.sleep

    async def __aenter__(self) -> "ContentFetcher":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def headers(self) -> dict[str, str]:
        """Request headers sent with every fetch."""
        return {
            "User-Agent": self._settings.user_agent,
            "Accept-Encoding": "gzip, deflate",
        }

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._settings.timeout,
                follow_redirects=False,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a URL once.

        Args:
            url: Absolute URL.

        Returns:
            FetchResult with the (decompressed) body and post-redirect URL.

        Raises:
            NetworkError: On connection failure or timeout.
            HttpStatusError: On a non-2xx, non-redirect response.
            TooManyRedirectsError: When the redirect chain exceeds the hop limit.
            FetchError: When a URL or redirect location cannot be parsed.
        """
        result = await self._fetch_primary(url)

        if is_textual(result.raw_bytes) or not self._settings.curl_fallback:
            return result

        LOGGER.debug("Binary payload from %s, retrying through curl", result.final_url)
        fallback = await self._run_curl(result.final_url)
        if fallback is not None and is_textual(fallback):
            LOGGER.info("Recovered text content for %s via curl", result.final_url)
            return FetchResult(
                raw_bytes=fallback,
                final_url=result.final_url,
                status_code=result.status_code,
                content_encoding=result.content_encoding,
            )
        return result

    async def fetch_text(self, url: str) -> str:
        """Fetch a URL once and return its body as text."""
        result = await self.fetch(url)
        return result.text

    async def fetch_with_retry(
        self,
        url: str,
        retries: int | None = None,
        base_delay: float | None = None,
    ) -> FetchResult:
        """
        Fetch a URL, retrying any failure with linear backoff.

        Attempt N that fails waits ``N * base_delay`` seconds before the next.

        Args:
            url: Absolute URL.
            retries: Total attempts (defaults to settings.max_retries).
            base_delay: Backoff unit in seconds (defaults to settings.retry_delay).

        Returns:
            FetchResult of the first successful attempt.

        Raises:
            FetchError: The last error once every attempt has failed.
        """
        attempts = max(1, retries if retries is not None else self._settings.max_retries)
        delay = self._settings.retry_delay if base_delay is None else base_delay
        attempt = 1

        while True:
            try:
                return await self.fetch(url)
            except FetchError as e:
                LOGGER.info("Retry %d/%d for %s: %s", attempt, attempts, url, e.message)
                if attempt >= attempts:
                    raise
            await self._sleep(attempt * delay)
            attempt += 1

    async def _fetch_primary(self, url: str) -> FetchResult:
        """Issue GETs until a non-redirect response arrives."""
        client = await self._get_http_client()
        correlation_id = generate_correlation_id()
        current = url

        for _ in range(self._settings.max_redirects + 1):
            try:
                async with client.stream("GET", current, headers=self.headers) as response:
                    location = response.headers.get("location")
                    if 300 <= response.status_code < 400 and location:
                        try:
                            target = urljoin(current, location)
                        except ValueError as e:
                            raise FetchError(
                                f"Invalid redirect location {location!r}: {e}",
                                url=current,
                                status_code=response.status_code,
                                correlation_id=correlation_id,
                            ) from e
                        LOGGER.debug("Redirect %d: %s -> %s", response.status_code, current, target)
                        current = target
                        continue

                    if not 200 <= response.status_code < 300:
                        raise HttpStatusError(
                            f"Request failed with status code {response.status_code}",
                            url=current,
                            status_code=response.status_code,
                            correlation_id=correlation_id,
                        )

                    body = b"".join([chunk async for chunk in response.aiter_raw()])
                    encoding = response.headers.get("content-encoding")
                    status_code = response.status_code

            except httpx.TimeoutException as e:
                raise NetworkError(
                    f"Request timed out after {self._settings.timeout}s",
                    url=current,
                    correlation_id=correlation_id,
                ) from e
            except httpx.HTTPError as e:
                raise NetworkError(
                    f"Request failed: {e}",
                    url=current,
                    correlation_id=correlation_id,
                ) from e
            except httpx.InvalidURL as e:
                raise FetchError(
                    f"Invalid URL: {e}",
                    url=current,
                    correlation_id=correlation_id,
                ) from e

            gzip_encoded = bool(encoding) and encoding.strip().lower() in GZIP_ENCODINGS
            if gzip_encoded or body.startswith(GZIP_MAGIC):
                try:
                    body = decompress_gzip(body)
                except DecodeError as e:
                    log_with_correlation(
                        LOGGER,
                        logging.DEBUG,
                        f"Keeping raw body for {current}: {e.message}",
                        correlation_id=correlation_id,
                        url=current,
                    )

            return FetchResult(
                raw_bytes=body,
                final_url=current,
                status_code=status_code,
                content_encoding=encoding,
            )

        raise TooManyRedirectsError(
            f"Exceeded {self._settings.max_redirects} redirects",
            url=url,
            correlation_id=correlation_id,
            context={"last_url": current},
        )

    async def _run_curl(self, url: str) -> bytes | None:
        """
        Fetch a URL through the curl binary, letting it handle compression.

        Returns:
            curl's stdout, or None if curl is missing, fails or times out.
        """
        timeout = self._settings.timeout
        try:
            process = await asyncio.create_subprocess_exec(
                self._settings.curl_path,
                "--compressed",
                "--location",
                "--silent",
                "--show-error",
                "--max-time",
                str(timeout),
                "--user-agent",
                self._settings.user_agent,
                url,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            LOGGER.debug("curl unavailable (%s): %s", self._settings.curl_path, e)
            return None

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout + 5)
        except TimeoutError:
            process.kill()
            await process.wait()
            LOGGER.debug("curl timed out for %s", url)
            return None

        if process.returncode != 0:
            LOGGER.debug(
                "curl exited with %s for %s: %s",
                process.returncode,
                url,
                stderr.decode("utf-8", errors="replace").strip(),
            )
            return None
        return stdout
