"""
Dependency Injection for the proxy API.

Manage request handler dependencies using FastAPI Depends.
"""

import re
from typing import Annotated, Optional

from fastapi import Depends, Request

from ..config import config
from ..models.context import RequestContext
from ..services.processor import ProxyRequestProcessor


# ==========================================
# 1. Service Accessors
# ==========================================


def get_processor(request: Request) -> ProxyRequestProcessor:
    return request.app.state.processor


ProcessorDep = Annotated[ProxyRequestProcessor, Depends(get_processor)]


# ==========================================
# 2. Logic Dependencies (Request parsing)
# ==========================================


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_quality(value: Optional[str]) -> int:
    # Leading digits count, so "40abc" is 40.
    match = _LEADING_INT.match(value or "")
    quality = int(match.group(1)) if match else 0
    if quality <= 0:
        return config.DEFAULT_QUALITY
    return min(quality, 100)


def _is_zero(value: str) -> bool:
    """Numeric zero test: "0", "00", " 0.0" and "" are all zero."""
    text = value.strip()
    if not text:
        return True
    try:
        return float(text) == 0
    except ValueError:
        return False


async def build_request_context(request: Request) -> Optional[RequestContext]:
    """
    Build the RequestContext from query parameters and headers.

    Query parameters:
        url: target URL (required; None is returned when absent)
        jpeg: any non-empty value selects JPEG output instead of WebP
        bw: a numeric zero ("0", "00", empty) disables grayscale
        l: output quality

    Returns:
        RequestContext, or None when no target URL was given
    """
    params = request.query_params
    url = params.get("url")
    if not url:
        return None

    headers = request.headers
    forwarded_for = headers.get("x-forwarded-for") or (
        request.client.host if request.client else None
    )

    return RequestContext(
        url=url,
        cookie=headers.get("cookie"),
        dnt=headers.get("dnt"),
        referer=headers.get("referer"),
        user_agent=headers.get("user-agent"),
        forwarded_for=forwarded_for,
        webp=not params.get("jpeg"),
        grayscale=not _is_zero(params["bw"]) if "bw" in params else True,
        quality=_parse_quality(params.get("l")),
    )


RequestContextDep = Annotated[Optional[RequestContext], Depends(build_request_context)]
