"""
Services package.

Provides the request orchestration and the response writers.
"""

from .delivery import DeliveryPolicy
from .processor import ProxyRequestProcessor, ProxyState

__all__ = [
    "DeliveryPolicy",
    "ProxyRequestProcessor",
    "ProxyState",
]
