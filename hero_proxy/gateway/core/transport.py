"""
Where: hero_proxy/gateway/core/transport.py
What: Origin transport selecting HTTP/1.1 or a dedicated HTTP/2 connection by URL scheme.
Why: Give the processor one uniform OriginResponse whatever protocol fetched it.
"""

import logging
from typing import Dict, Optional

import httpx

from hero_proxy.common.core.http_client import HttpClientFactory

from ..models.origin import OriginResponse
from ..models.outbound import OutboundRequestSpec
from .exceptions import TransportFailureError, UnsupportedProtocolError

logger = logging.getLogger("gateway.transport")

PRIMARY_SCHEMES = ("http", "https")
HTTP2_SCHEME = "http2"

# Only these request headers travel over the dedicated HTTP/2 connection.
HTTP2_HEADER_WHITELIST = ("cookie", "dnt", "referer", "user-agent")


def pick_headers(headers: Dict[str, str], names) -> Dict[str, str]:
    """Case-insensitive subset of ``headers`` restricted to ``names``."""
    wanted = {name.lower() for name in names}
    return {key.lower(): value for key, value in headers.items() if key.lower() in wanted}


class OriginTransport:
    """
    Fetch the origin resource described by an OutboundRequestSpec.

    - ``http``/``https``: shared client, redirects followed, raw body.
    - ``http2``: single-use HTTP/2 client against the ``https`` origin,
      closed on every exit path.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        factory: HttpClientFactory,
        log: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.factory = factory
        self.logger = log or logger

    async def fetch(self, spec: OutboundRequestSpec) -> OriginResponse:
        url = httpx.URL(spec.url)
        scheme = url.scheme.lower()

        if scheme in PRIMARY_SCHEMES:
            return await self._fetch_primary(spec)
        if scheme == HTTP2_SCHEME:
            return await self._fetch_http2(spec, url)
        raise UnsupportedProtocolError(scheme)

    async def _fetch_primary(self, spec: OutboundRequestSpec) -> OriginResponse:
        try:
            async with self.client.stream(
                spec.method,
                spec.url,
                headers=spec.headers,
                timeout=spec.timeout,
                follow_redirects=spec.max_redirects > 0,
            ) as response:
                # aiter_raw keeps the payload exactly as the origin encoded it.
                body = b"".join([chunk async for chunk in response.aiter_raw()])
        except httpx.HTTPError as e:
            raise TransportFailureError(spec.url, e) from e

        self.logger.debug(
            f"Fetched {spec.url} ({response.status_code})",
            extra={
                "url": spec.url,
                "status": response.status_code,
                "http_version": response.http_version,
                "redirects": len(response.history),
                "size": len(body),
            },
        )
        return OriginResponse(status_code=response.status_code, headers=response.headers, body=body)

    async def _fetch_http2(self, spec: OutboundRequestSpec, url: httpx.URL) -> OriginResponse:
        target = url.copy_with(scheme="https")
        headers = pick_headers(spec.headers, HTTP2_HEADER_WHITELIST)

        try:
            # Only the primary fetch is time-bounded.
            async with self.factory.create_http2_client(timeout=None) as client:
                async with client.stream(spec.method, target, headers=headers) as response:
                    chunks = []
                    async for chunk in response.aiter_raw():
                        chunks.append(chunk)
        except httpx.HTTPError as e:
            raise TransportFailureError(spec.url, e) from e

        body = b"".join(chunks)
        self.logger.debug(
            f"Fetched {target} over {response.http_version} ({response.status_code})",
            extra={
                "url": spec.url,
                "status": response.status_code,
                "http_version": response.http_version,
                "size": len(body),
            },
        )
        return OriginResponse(status_code=response.status_code, headers=response.headers, body=body)
