"""
Settings and configuration for the OpenShift image source.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at client construction time.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

__all__ = ["Settings", "create_settings_from_env"]


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the metadata client and image sources.

    Metadata API Settings:
        api_url: Base URL of the metadata API (required)
        token: Bearer token sent with every request
        insecure: Allow HTTP and skip TLS verification for local/dev clusters
        http_timeout_s: HTTP request timeout in seconds
        http_retry: Number of retries on timeouts (0=no retry)

    Resolution Settings:
        cache_resolution_failures: Remember a missing tag instead of
            re-querying the image stream on every call
    """
    api_url: str
    token: Optional[str] = None
    insecure: bool = False
    http_timeout_s: float = 30.0
    http_retry: int = 0
    cache_resolution_failures: bool = False

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.api_url:
            raise ValueError("api_url is required")

        # host[:port] or http(s)://host[:port]
        url_pattern = r"^(?:https?://)?[a-zA-Z0-9.-]+(?::[0-9]+)?/?$"
        if not re.match(url_pattern, self.api_url):
            raise ValueError(f"Invalid api_url format: {self.api_url}")

        if self.api_url.startswith("http://") and not self.insecure:
            raise ValueError("api_url uses http:// but insecure is not enabled")

        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.http_retry < 0:
            raise ValueError(f"http_retry must be non-negative, got {self.http_retry}")

    @property
    def base_url(self) -> str:
        """API URL with an explicit scheme and no trailing slash."""
        url = self.api_url.rstrip("/")
        if url.startswith(("http://", "https://")):
            return url
        scheme = "http" if self.insecure else "https"
        return f"{scheme}://{url}"


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - OPENSHIFT_API_URL (required)
        - OPENSHIFT_TOKEN (optional)
        - OPENSHIFT_INSECURE (default: false)
        - OPENSHIFT_HTTP_TIMEOUT (default: 30.0)
        - OPENSHIFT_HTTP_RETRY (default: 0)
        - OPENSHIFT_CACHE_RESOLUTION_FAILURES (default: false)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid or required values missing
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    api_url = os.getenv("OPENSHIFT_API_URL")
    if not api_url:
        raise ValueError("OPENSHIFT_API_URL environment variable is required")

    return Settings(
        api_url=api_url,
        token=os.getenv("OPENSHIFT_TOKEN") or None,
        insecure=str_to_bool(os.getenv("OPENSHIFT_INSECURE", "false")),
        http_timeout_s=get_float("OPENSHIFT_HTTP_TIMEOUT", 30.0),
        http_retry=get_int("OPENSHIFT_HTTP_RETRY", 0),
        cache_resolution_failures=str_to_bool(
            os.getenv("OPENSHIFT_CACHE_RESOLUTION_FAILURES", "false")
        ),
    )
