"""
Where: hero_proxy/gateway/tests/test_routes.py
What: End-to-end behavior of the proxy endpoint with a mocked origin.
Why: Verify app assembly (lifespan, DI, middleware) around the processor.
"""

import gzip
from unittest.mock import patch

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from hero_proxy.gateway import main
from hero_proxy.gateway.main import app, parse_bind_addr


@pytest.fixture
def origin():
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def client(origin):
    with TestClient(app) as test_client:
        yield test_client


def test_banner_without_url(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "bandwidth-hero-proxy"


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_gzip_png_is_recompressed(client, origin, png_bytes):
    origin.get("https://example.com/a.png").mock(
        return_value=httpx.Response(
            200,
            content=gzip.compress(png_bytes),
            headers={"content-encoding": "gzip", "content-type": "image/png"},
        )
    )

    response = client.get("/", params={"url": "https://example.com/a.png", "l": "30"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/webp"
    assert response.headers["content-encoding"] == "identity"
    assert response.headers["x-original-size"] == str(len(png_bytes))
    assert response.content[:4] == b"RIFF"


def test_jpeg_option_selects_jpeg(client, origin, png_bytes):
    origin.get("https://example.com/big.png").mock(
        return_value=httpx.Response(200, content=png_bytes, headers={"content-type": "image/jpeg"})
    )

    response = client.get("/", params={"url": "https://example.com/big.png", "jpeg": "1"})

    assert response.headers["content-type"] == "image/jpeg"


def test_non_image_passes_through(client, origin):
    origin.get("https://example.com/page").mock(
        return_value=httpx.Response(
            200,
            content=gzip.compress(b"<html>hi</html>"),
            headers={"content-encoding": "gzip", "content-type": "text/html"},
        )
    )

    response = client.get("/", params={"url": "https://example.com/page"})

    assert response.status_code == 200
    assert response.headers["x-proxy-bypass"] == "1"
    assert response.content == b"<html>hi</html>"


def test_challenge_status_is_served_raw(client, origin):
    raw = gzip.compress(b"<html>challenge</html>")
    origin.get("https://example.com/a.png").mock(
        return_value=httpx.Response(503, content=raw, headers={"content-encoding": "gzip"})
    )

    response = client.get("/", params={"url": "https://example.com/a.png"})

    assert response.status_code == 200
    assert response.headers["x-proxy-bypass"] == "1"
    assert response.content == raw


def test_unsupported_scheme_redirects(client):
    response = client.get("/", params={"url": "ftp://host/file"}, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "ftp://host/file"


def test_origin_timeout_redirects(client, origin):
    origin.get("https://slow.example.com/a.png").mock(side_effect=httpx.ConnectTimeout)

    response = client.get(
        "/", params={"url": "https://slow.example.com/a.png"}, follow_redirects=False
    )

    assert response.status_code == 302
    assert response.headers["location"] == "https://slow.example.com/a.png"


@pytest.mark.parametrize("status_code", [404, 500])
def test_origin_error_status_redirects(client, origin, status_code):
    origin.get("https://example.com/missing.png").mock(
        return_value=httpx.Response(
            status_code, content=b"<html>not here</html>", headers={"content-type": "text/html"}
        )
    )

    response = client.get(
        "/", params={"url": "https://example.com/missing.png"}, follow_redirects=False
    )

    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com/missing.png"
    assert "x-proxy-bypass" not in response.headers
    assert "content-type" not in response.headers


def test_forwarded_for_falls_back_to_client_ip(client, origin):
    route = origin.get("https://example.com/t.txt").mock(
        return_value=httpx.Response(200, content=b"ok", headers={"content-type": "text/plain"})
    )

    client.get("/", params={"url": "https://example.com/t.txt"})

    assert route.calls.last.request.headers["x-forwarded-for"] == "testclient"


def test_inbound_forwarded_for_is_kept(client, origin):
    route = origin.get("https://example.com/t.txt").mock(
        return_value=httpx.Response(200, content=b"ok", headers={"content-type": "text/plain"})
    )

    client.get(
        "/",
        params={"url": "https://example.com/t.txt"},
        headers={"x-forwarded-for": "198.51.100.2", "cookie": "k=v"},
    )

    sent = route.calls.last.request.headers
    assert sent["x-forwarded-for"] == "198.51.100.2"
    assert sent["cookie"] == "k=v"


def test_response_carries_request_id(client):
    response = client.get("/", headers={"X-Request-Id": "req-123"})

    assert response.headers["X-Request-Id"] == "req-123"


def test_parse_bind_addr():
    assert parse_bind_addr("127.0.0.1:9000") == ("127.0.0.1", 9000)
    assert parse_bind_addr(":8080") == ("0.0.0.0", 8080)


def test_run_starts_configured_workers(monkeypatch):
    monkeypatch.setattr(main.config, "UVICORN_BIND_ADDR", "127.0.0.1:9000")
    monkeypatch.setattr(main.config, "UVICORN_WORKERS", 3)

    with patch("uvicorn.run") as uvicorn_run:
        main.run()

    uvicorn_run.assert_called_once_with(
        "hero_proxy.gateway.main:app", host="127.0.0.1", port=9000, workers=3
    )
