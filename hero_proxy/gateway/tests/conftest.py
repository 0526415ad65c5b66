import io
import random

import httpx
import pytest
from PIL import Image

from hero_proxy.gateway.config import ProxyConfig
from hero_proxy.gateway.models.context import RequestContext
from hero_proxy.gateway.models.origin import OriginResponse


def _noise_png(size: int = 64) -> bytes:
    # Noise keeps the PNG well above the transform thresholds.
    rng = random.Random(0)
    image = Image.frombytes("RGB", (size, size), rng.randbytes(size * size * 3))
    output = io.BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


@pytest.fixture(scope="session")
def png_bytes() -> bytes:
    return _noise_png()


@pytest.fixture
def proxy_config() -> ProxyConfig:
    return ProxyConfig(_env_file=None)


@pytest.fixture
def make_context():
    def _make(url: str = "https://example.com/a.png", **kwargs) -> RequestContext:
        kwargs.setdefault("forwarded_for", "203.0.113.7")
        return RequestContext(url=url, **kwargs)

    return _make


@pytest.fixture
def make_origin():
    def _make(status_code: int = 200, body: bytes = b"", headers=None) -> OriginResponse:
        return OriginResponse(
            status_code=status_code, headers=httpx.Headers(headers or {}), body=body
        )

    return _make
