"""Custom exceptions for sitemapaudit with context support."""

import uuid
from typing import Any


def generate_correlation_id() -> str:
    """
    Generate an 8-character UUID-based correlation ID.

    Returns:
        8-character correlation ID string.
    """
    return str(uuid.uuid4())[:8]


class SitemapAuditError(Exception):
    """Base exception for sitemapaudit with context and correlation ID support."""

    def __init__(
        self,
        message: str,
        correlation_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialise exception with message, correlation ID, and context.

        Args:
            message: Error message.
            correlation_id: Optional correlation ID. If None, generates a new one.
            context: Optional context dictionary for debugging.
        """
        self.message = message
        self.correlation_id = correlation_id or generate_correlation_id()
        self.context = context or {}
        super().__init__(f"{message} [correlation_id={self.correlation_id}]")


class ValidationError(SitemapAuditError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        correlation_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialise validation error with field and value context.

        Args:
            message: Error message.
            field: Optional field name that failed validation.
            value: Optional value that failed validation.
            correlation_id: Optional correlation ID. If None, generates a new one.
            context: Optional context dictionary for debugging.
        """
        if context is None:
            context = {}
        if field is not None:
            context["field"] = field
        if value is not None:
            context["value"] = str(value)
        super().__init__(message, correlation_id=correlation_id, context=context)


class ConfigurationError(SitemapAuditError):
    """Raised when configuration loading or validation fails."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        correlation_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialise configuration error with setting context.

        Args:
            message: Error message.
            setting: Optional name of the offending setting.
            correlation_id: Optional correlation ID. If None, generates a new one.
            context: Optional context dictionary for debugging.
        """
        if context is None:
            context = {}
        if setting is not None:
            context["setting"] = setting
        super().__init__(message, correlation_id=correlation_id, context=context)


class FetchError(SitemapAuditError):
    """Raised when a URL cannot be retrieved."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        correlation_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialise fetch error with URL and status context.

        Args:
            message: Error message.
            url: Optional URL that was being fetched.
            status_code: Optional HTTP status code of the failed response.
            correlation_id: Optional correlation ID. If None, generates a new one.
            context: Optional context dictionary for debugging.
        """
        if context is None:
            context = {}
        if url is not None:
            context["url"] = url
        if status_code is not None:
            context["status_code"] = status_code
        self.url = url
        self.status_code = status_code
        super().__init__(message, correlation_id=correlation_id, context=context)


class NetworkError(FetchError):
    """Raised on connection failures, DNS errors and timeouts."""


class HttpStatusError(FetchError):
    """Raised when a response is neither 2xx nor a followable redirect."""


class TooManyRedirectsError(FetchError):
    """Raised when a redirect chain exceeds the configured hop limit."""


class DecodeError(SitemapAuditError):
    """Raised when a gzip payload cannot be decompressed."""


class ParseError(SitemapAuditError):
    """Raised when sitemap XML is malformed or of an unknown shape."""
