"""
Request context model.

Encapsulates everything the proxy knows about one client request.
"""

from typing import Optional

import httpx
from pydantic import BaseModel


class RequestContext(BaseModel):
    """
    Rich context representing an incoming proxy request.

    Decouples the service layer from FastAPI's Request object. The
    ``origin_type`` and ``origin_size`` fields are filled in after the
    origin has been fetched and decoded.
    """

    url: str

    # Inbound header subset
    cookie: Optional[str] = None
    dnt: Optional[str] = None
    referer: Optional[str] = None
    user_agent: Optional[str] = None
    forwarded_for: Optional[str] = None

    # Client options
    webp: bool = True
    grayscale: bool = True
    quality: int = 40

    # Populated post-fetch
    origin_type: str = ""
    origin_size: int = 0

    @property
    def target(self) -> httpx.URL:
        """Parsed target URL (scheme, host, path)."""
        return httpx.URL(self.url)
