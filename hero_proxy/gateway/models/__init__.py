"""
Data model definitions package.

Aggregates the per-request models used by the proxy pipeline.
"""

from .context import RequestContext
from .origin import OriginResponse
from .outbound import OutboundRequestSpec, build_outbound_request

__all__ = [
    "RequestContext",
    "OriginResponse",
    "OutboundRequestSpec",
    "build_outbound_request",
]
