"""
Where: hero_proxy/gateway/core/decompression.py
What: Decompression multiplexer normalizing Content-Encoding into raw bytes.
Why: Origins may answer in any coding we advertise; downstream only handles identity bytes.
"""

import asyncio
import gzip
import logging
import lzma
import zlib
from enum import Enum
from typing import List, Optional

import brotli
import zstandard

from .exceptions import DecodeFailureError

logger = logging.getLogger("gateway.decompression")

# Output cap for zstd frames that do not declare their content size.
ZSTD_MAX_OUTPUT_SIZE = 64 * 1024 * 1024


class ContentEncoding(Enum):
    GZIP = "gzip"
    BROTLI = "br"
    DEFLATE = "deflate"
    LZMA = "lzma"
    LZMA2 = "lzma2"
    ZSTD = "zstd"
    UNKNOWN = "unknown"

    @classmethod
    def from_label(cls, label: str) -> "ContentEncoding":
        """Map a single Content-Encoding token onto an encoding (case-insensitive)."""
        return _LABELS.get(label.strip().lower(), cls.UNKNOWN)


_LABELS = {
    "gzip": ContentEncoding.GZIP,
    "x-gzip": ContentEncoding.GZIP,
    "br": ContentEncoding.BROTLI,
    "brotli": ContentEncoding.BROTLI,
    "deflate": ContentEncoding.DEFLATE,
    "lzma": ContentEncoding.LZMA,
    "lzma2": ContentEncoding.LZMA2,
    "zstd": ContentEncoding.ZSTD,
}


def _inflate(data: bytes) -> bytes:
    try:
        return zlib.decompress(data)
    except zlib.error:
        # Headerless deflate stream
        return zlib.decompress(data, -zlib.MAX_WBITS)


def decode(data: bytes, encoding: ContentEncoding) -> bytes:
    """
    Decode ``data`` with a single known encoding.

    Raises whatever the underlying codec raises; ``UNKNOWN`` raises ValueError.
    """
    if encoding is ContentEncoding.GZIP:
        return gzip.decompress(data)
    if encoding is ContentEncoding.BROTLI:
        return brotli.decompress(data)
    if encoding is ContentEncoding.DEFLATE:
        return _inflate(data)
    if encoding in (ContentEncoding.LZMA, ContentEncoding.LZMA2):
        # FORMAT_AUTO detects .xz and legacy .lzma containers from the stream.
        return lzma.decompress(data)
    if encoding is ContentEncoding.ZSTD:
        return zstandard.ZstdDecompressor().decompress(
            data, max_output_size=ZSTD_MAX_OUTPUT_SIZE
        )
    raise ValueError(f"No decoder for {encoding}")


def parse_codings(label: Optional[str]) -> List[str]:
    """Split a Content-Encoding header into its non-identity codings, in applied order."""
    if not label:
        return []
    return [
        token.strip().lower()
        for token in label.split(",")
        if token.strip() and token.strip().lower() != "identity"
    ]


class Decompressor:
    """
    Decompression multiplexer.

    Never raises: unknown codings and decode failures are logged and the
    original bytes are returned as if they were identity-encoded.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self.logger = log or logger

    def decompress_sync(self, data: bytes, label: Optional[str]) -> bytes:
        codings = parse_codings(label)
        if not codings:
            return data

        encodings = [ContentEncoding.from_label(token) for token in codings]
        for token, encoding in zip(codings, encodings):
            if encoding is ContentEncoding.UNKNOWN:
                self.logger.warning(
                    f"Unknown content-encoding: {token}",
                    extra={"content_encoding": label, "size": len(data)},
                )
                return data

        result = data
        # Codings are listed in the order they were applied; undo them in reverse.
        for encoding in reversed(encodings):
            try:
                result = decode(result, encoding)
            except Exception as e:
                failure = DecodeFailureError(encoding.value, e)
                self.logger.warning(
                    str(failure),
                    extra={
                        "content_encoding": label,
                        "size": len(data),
                        "error_type": type(e).__name__,
                    },
                )
                return data

        self.logger.debug(
            f"Decoded {label} payload",
            extra={"content_encoding": label, "size": len(data), "decoded_size": len(result)},
        )
        return result

    async def decompress(self, data: bytes, label: Optional[str]) -> bytes:
        """Decode off the event loop; see ``decompress_sync``."""
        return await asyncio.to_thread(self.decompress_sync, data, label)
