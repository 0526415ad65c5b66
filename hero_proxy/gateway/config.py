"""
Proxy configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

import sys
from typing import List

from pydantic import Field

from hero_proxy.common.core.config import BaseAppConfig

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; rv:121.0) Gecko/20100101 Firefox/121.0"


class ProxyConfig(BaseAppConfig):
    """
    Configuration management for the forwarding proxy.
    """

    # Server settings
    UVICORN_WORKERS: int = Field(default=4, ge=1, description="Number of worker processes")
    UVICORN_BIND_ADDR: str = Field(default="0.0.0.0:8080", description="Listen address")

    # Origin fetch
    ORIGIN_TIMEOUT_SECONDS: float = Field(
        default=10.0, gt=0, description="Primary origin fetch timeout (seconds)"
    )
    ORIGIN_MAX_REDIRECTS: int = Field(
        default=5, ge=0, description="Redirects followed by the primary transport"
    )
    ORIGIN_USER_AGENT: str = Field(
        default=DEFAULT_USER_AGENT, description="User-Agent presented to origins"
    )
    PROXY_VIA: str = Field(default="2.0 bandwidth-hero", description="Via marker for origins")

    # Status codes served by bot-mitigation layers instead of content
    ANTIBOT_STATUS_CODES: List[int] = Field(
        default=[403, 503], description="Origin statuses passed through untouched"
    )

    # Transformation thresholds
    MIN_COMPRESS_LENGTH: int = Field(
        default=1024, description="Smallest payload worth re-encoding to WebP (bytes)"
    )
    MIN_TRANSPARENT_COMPRESS_LENGTH: int = Field(
        default=1024 * 100,
        description="Smallest PNG/GIF payload worth flattening to JPEG (bytes)",
    )
    DEFAULT_QUALITY: int = Field(default=40, ge=1, le=100, description="Default output quality")

    # FastAPI settings
    root_path: str = Field(default="", description="API root path (for proxy)")

    # model_config is inherited


# Load config as a singleton.
# pydantic-settings reads environment variables during instantiation.
try:
    config = ProxyConfig()
except Exception as e:
    sys.stderr.write(f"Failed to load configuration: {e}\n")
    raise
