"""
Where: hero_proxy/gateway/services/collaborators.py
What: Terminal response writers and the transform-candidacy predicate.
Why: Keep response construction out of the processor so each path is swappable.

Every writer receives the per-request header sink (a Starlette MutableHeaders)
and returns the final Response. Content-Length is always computed from the
body by Starlette.
"""

import asyncio
import io
import logging
from urllib.parse import quote

from PIL import Image, UnidentifiedImageError
from starlette.datastructures import MutableHeaders
from starlette.responses import Response

from ..models.context import RequestContext
from ..models.origin import OriginResponse

logger = logging.getLogger("gateway.collaborators")

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)
# Recomputed or overridden by the proxy.
NON_COPIED_HEADERS = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}

# Cache validators of the origin body must not leak onto a redirect.
REDIRECT_STRIPPED_HEADERS = (
    "cache-control",
    "etag",
    "expires",
    "date",
    "last-modified",
    "content-type",
    "content-encoding",
)

# Characters encodeURI leaves alone, plus '%' so encoded URLs are not double-encoded.
_URI_SAFE = ";,/?:@&=+$-_.!~*'()#%"


def build_response(content: bytes, status_code: int, sink: MutableHeaders) -> Response:
    response = Response(content=content, status_code=status_code)
    for key, value in sink.raw:
        if key == b"content-length":
            continue
        response.headers.append(key.decode("latin-1"), value.decode("latin-1"))
    return response


def copy_headers(origin: OriginResponse, sink: MutableHeaders) -> None:
    """Propagate origin headers, skipping hop-by-hop and body-framing headers."""
    for key, value in origin.headers.multi_items():
        if key.lower() in NON_COPIED_HEADERS:
            continue
        try:
            sink.append(key, value)
        except UnicodeEncodeError:
            logger.debug(f"Skipping non latin-1 origin header {key}")


def should_transform(
    context: RequestContext,
    data: bytes,
    *,
    min_length: int = 1024,
    min_transparent_length: int = 1024 * 100,
) -> bool:
    """
    Decide whether a decoded payload is worth recompressing.

    Only images qualify. Small images are served as-is, and PNG/GIF are only
    flattened to JPEG when large enough to offset losing transparency.
    """
    if not context.origin_type.startswith("image"):
        return False
    if context.origin_size == 0 or not data:
        return False
    if context.webp and context.origin_size < min_length:
        return False
    if (
        not context.webp
        and context.origin_type.endswith(("png", "gif"))
        and context.origin_size < min_transparent_length
    ):
        return False
    return True


async def pass_through(context: RequestContext, sink: MutableHeaders, data: bytes) -> Response:
    sink["x-proxy-bypass"] = "1"
    return build_response(data, 200, sink)


def encode_image(data: bytes, *, webp: bool, grayscale: bool, quality: int) -> bytes:
    """Re-encode an image as WebP or JPEG."""
    with Image.open(io.BytesIO(data)) as image:
        has_alpha = "A" in image.getbands() or "transparency" in image.info
        if grayscale:
            image = image.convert("LA" if webp and has_alpha else "L")
        elif webp:
            image = image.convert("RGBA" if has_alpha else "RGB")
        if not webp and image.mode not in ("RGB", "L"):
            image = image.convert("RGB")

        output = io.BytesIO()
        image.save(output, format="WEBP" if webp else "JPEG", quality=quality)
        return output.getvalue()


async def transform(context: RequestContext, sink: MutableHeaders, data: bytes) -> Response:
    """
    Recompress an image payload.

    Undecodable images fall back to pass-through with the bytes received.
    """
    try:
        output = await asyncio.to_thread(
            encode_image,
            data,
            webp=context.webp,
            grayscale=context.grayscale,
            quality=context.quality,
        )
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(
            f"Image transform failed, passing through: {e}",
            extra={"url": context.url, "origin_type": context.origin_type, "error_type": type(e).__name__},
        )
        return await pass_through(context, sink, data)

    sink["content-type"] = "image/webp" if context.webp else "image/jpeg"
    sink["x-original-size"] = str(context.origin_size)
    sink["x-bytes-saved"] = str(context.origin_size - len(output))
    return build_response(output, 200, sink)


async def redirect_to_origin(context: RequestContext, sink: MutableHeaders) -> Response:
    """Send the client straight to the origin URL."""
    for name in REDIRECT_STRIPPED_HEADERS:
        if name in sink:
            del sink[name]
    sink["location"] = quote(context.url, safe=_URI_SAFE)
    return build_response(b"", 302, sink)
