"""
Core logic package.

Provides the origin transport, decompression and anti-bot detection.
"""

from .antibot import is_challenge_status
from .decompression import ContentEncoding, Decompressor
from .transport import OriginTransport

__all__ = [
    "is_challenge_status",
    "ContentEncoding",
    "Decompressor",
    "OriginTransport",
]
