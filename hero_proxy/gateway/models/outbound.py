"""
Outbound request model.

Immutable description of the fetch issued against the origin.
"""

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from .context import RequestContext

ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/*,*/*;q=0.8"
# Every coding the decompression multiplexer can undo.
ACCEPT_ENCODING = "gzip, deflate, br, lzma, lzma2, zstd"
CACHE_CONTROL = "no-cache, no-store, must-revalidate"


class OutboundRequestSpec(BaseModel):
    """
    Fetch description derived from a RequestContext.

    ``raw_body`` marks that the response body is retrieved as opaque bytes,
    never decoded implicitly by the HTTP client.
    """

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    timeout: float = 10.0
    max_redirects: int = 5
    raw_body: bool = True


def build_outbound_request(
    context: RequestContext,
    *,
    user_agent: str,
    via: str,
    timeout: float,
    max_redirects: int,
) -> OutboundRequestSpec:
    """
    Synthesize the outbound header set for a request.

    Inbound ``cookie``, ``dnt`` and ``referer`` are forwarded when present;
    the fixed identity headers always win.
    """
    headers: Dict[str, str] = {}
    if context.cookie:
        headers["cookie"] = context.cookie
    if context.dnt:
        headers["dnt"] = context.dnt
    if context.referer:
        headers["referer"] = context.referer

    headers.update(
        {
            "user-agent": user_agent,
            "accept": ACCEPT,
            "accept-encoding": ACCEPT_ENCODING,
            "cache-control": CACHE_CONTROL,
            "dnt": "1",
            "via": via,
        }
    )
    if context.forwarded_for:
        headers["x-forwarded-for"] = context.forwarded_for

    return OutboundRequestSpec(
        url=context.url,
        headers=headers,
        timeout=timeout,
        max_redirects=max_redirects,
    )
