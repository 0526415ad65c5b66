"""
Origin response model.

Uniform view of an origin response regardless of the transport used.
"""

from dataclasses import dataclass

import httpx


@dataclass(frozen=True)
class OriginResponse:
    status_code: int
    headers: httpx.Headers
    body: bytes

    @property
    def content_encoding(self) -> str:
        return self.headers.get("content-encoding", "")

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300
