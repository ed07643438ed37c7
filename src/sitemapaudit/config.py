"""
Configuration for sitemapaudit.

Uses Pydantic Settings for type-safe environment variable loading. Settings
are read once and handed to each component explicitly.
"""

from pathlib import Path

import pydantic
from dotenv import load_dotenv
from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from sitemapaudit.exceptions import ConfigurationError, generate_correlation_id

# Browser-like User-Agent; some hosts refuse sitemaps to unknown clients
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class DiscoverySettings(BaseSettings):
    """Sitemap discovery settings."""

    model_config = ConfigDict(
        env_prefix="SITEMAPAUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # HTTP
    timeout: float = Field(default=10.0, gt=0, le=300, description="Per-request timeout (seconds)")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, min_length=1, description="User-Agent header")
    max_redirects: int = Field(default=10, ge=0, le=50, description="Maximum redirect hops per fetch")

    # Retry
    max_retries: int = Field(default=3, ge=1, le=20, description="Attempts per sitemap fetch")
    retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Base backoff delay; attempt N waits N * retry_delay seconds",
    )

    # Expansion
    max_depth: int = Field(default=5, ge=1, le=20, description="Maximum sitemap index nesting")

    # curl fallback for payloads that arrive undecodable
    curl_fallback: bool = Field(default=True, description="Retry binary payloads through curl --compressed")
    curl_path: str = Field(default="curl", description="curl executable")

    # Output
    output_dir: Path = Field(default=Path("results/sitemap"), description="Base folder for URL lists")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper


def load_settings(**overrides: object) -> DiscoverySettings:
    """
    Load settings from the environment and an optional ``.env`` file.

    Args:
        **overrides: Explicit values taking precedence over the environment.
            ``None`` values are ignored so CLI options can be passed through.

    Returns:
        Validated DiscoverySettings.

    Raises:
        ConfigurationError: If any value fails validation.
    """
    load_dotenv()
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return DiscoverySettings(**values)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        setting = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid configuration: {first.get('msg', e)}",
            setting=setting or None,
            correlation_id=generate_correlation_id(),
            context={"errors": e.error_count()},
        ) from e
