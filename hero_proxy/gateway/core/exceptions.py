"""
Custom exception classes.

Represent failures of the origin fetch and of payload decoding.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ProxyError(Exception):
    """Base exception class for the forwarding proxy."""

    pass


class UnsupportedProtocolError(ProxyError):
    """Raised when the target URL scheme has no transport."""

    def __init__(self, scheme: str):
        self.scheme = scheme
        super().__init__(f"Unsupported protocol: {scheme}:")


class TransportFailureError(ProxyError):
    """Raised when the origin could not be fetched (connect, timeout, redirects, stream)."""

    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Origin fetch failed for {url}: {type(cause).__name__}: {cause}")


class OriginStatusError(ProxyError):
    """Raised when the primary transport receives a non-2xx status outside the anti-bot set."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Origin answered {status_code} for {url}")


class DecodeFailureError(ProxyError):
    """
    Raised inside the decompression multiplexer when a payload cannot be decoded.

    Never escapes the multiplexer: the caller receives the original bytes.
    """

    def __init__(self, encoding: str, cause: Exception):
        self.encoding = encoding
        self.cause = cause
        super().__init__(f"Decompression failed for encoding {encoding}: {cause}")


# ===========================================
# Exception Handlers
# ===========================================


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.
    """
    logger.error(
        f"Global exception handler caught: {exc}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error", "detail": str(exc)},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for HTTPException.
    """
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for validation errors.
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"message": "Validation Error", "detail": str(exc.errors())},
    )
