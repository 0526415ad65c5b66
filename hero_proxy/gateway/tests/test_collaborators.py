"""
Where: hero_proxy/gateway/tests/test_collaborators.py
What: Response writers, header propagation and the transform predicate.
Why: These decide what the client actually receives on each path.
"""

import io

import pytest
from PIL import Image
from starlette.datastructures import MutableHeaders

from hero_proxy.gateway.services import collaborators


class TestShouldTransform:
    def test_large_image_is_candidate(self, make_context):
        context = make_context(origin_type="image/jpeg", origin_size=50_000)

        assert collaborators.should_transform(context, b"x" * 50_000)

    def test_non_image_is_not_candidate(self, make_context):
        context = make_context(origin_type="text/html", origin_size=50_000)

        assert not collaborators.should_transform(context, b"x")

    def test_empty_payload_is_not_candidate(self, make_context):
        context = make_context(origin_type="image/png", origin_size=0)

        assert not collaborators.should_transform(context, b"")

    def test_small_webp_target_is_not_candidate(self, make_context):
        context = make_context(origin_type="image/jpeg", origin_size=500)

        assert not collaborators.should_transform(context, b"x" * 500, min_length=1024)

    @pytest.mark.parametrize("origin_type", ["image/png", "image/gif"])
    def test_transparent_formats_need_more_bytes_for_jpeg(self, make_context, origin_type):
        context = make_context(origin_type=origin_type, origin_size=5_000, webp=False)

        assert not collaborators.should_transform(
            context, b"x" * 5_000, min_transparent_length=100_000
        )

    def test_large_png_to_jpeg_is_candidate(self, make_context):
        context = make_context(origin_type="image/png", origin_size=200_000, webp=False)

        assert collaborators.should_transform(context, b"x", min_transparent_length=100_000)


def test_copy_headers_skips_framing_and_hop_by_hop(make_origin):
    origin = make_origin(
        200,
        b"",
        [
            ("content-type", "image/png"),
            ("content-length", "123"),
            ("content-encoding", "gzip"),
            ("transfer-encoding", "chunked"),
            ("connection", "keep-alive"),
            ("set-cookie", "a=1"),
            ("set-cookie", "b=2"),
            ("cache-control", "max-age=60"),
        ],
    )
    sink = MutableHeaders()

    collaborators.copy_headers(origin, sink)

    assert sink["content-type"] == "image/png"
    assert sink["cache-control"] == "max-age=60"
    assert sink.getlist("set-cookie") == ["a=1", "b=2"]
    for name in ("content-length", "content-encoding", "transfer-encoding", "connection"):
        assert name not in sink


@pytest.mark.asyncio
async def test_pass_through_marks_bypass(make_context):
    sink = MutableHeaders({"content-type": "image/png", "content-encoding": "identity"})

    response = await collaborators.pass_through(make_context(), sink, b"raw-bytes")

    assert response.status_code == 200
    assert response.body == b"raw-bytes"
    assert response.headers["x-proxy-bypass"] == "1"
    assert response.headers["content-length"] == "9"
    assert response.headers["content-type"] == "image/png"
    assert response.headers["content-encoding"] == "identity"


@pytest.mark.asyncio
async def test_transform_reencodes_to_webp(make_context, png_bytes):
    context = make_context(origin_type="image/png", origin_size=len(png_bytes), quality=40)
    sink = MutableHeaders({"content-type": "image/png"})

    response = await collaborators.transform(context, sink, png_bytes)

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/webp"
    assert response.headers["x-original-size"] == str(len(png_bytes))
    assert int(response.headers["x-bytes-saved"]) == len(png_bytes) - len(response.body)
    with Image.open(io.BytesIO(response.body)) as image:
        assert image.format == "WEBP"


@pytest.mark.asyncio
async def test_transform_to_color_jpeg(make_context, png_bytes):
    context = make_context(
        origin_type="image/png", origin_size=len(png_bytes), webp=False, grayscale=False
    )

    response = await collaborators.transform(context, MutableHeaders(), png_bytes)

    assert response.headers["content-type"] == "image/jpeg"
    with Image.open(io.BytesIO(response.body)) as image:
        assert image.format == "JPEG"
        assert image.mode == "RGB"


def test_encode_image_grayscale_keeps_alpha_for_webp():
    source = Image.new("RGBA", (8, 8), (255, 0, 0, 128))
    buffer = io.BytesIO()
    source.save(buffer, format="PNG")

    output = collaborators.encode_image(buffer.getvalue(), webp=True, grayscale=True, quality=50)

    with Image.open(io.BytesIO(output)) as image:
        assert "A" in image.getbands()


@pytest.mark.asyncio
async def test_transform_falls_back_to_pass_through_on_bad_image(make_context):
    context = make_context(origin_type="image/png", origin_size=4)

    response = await collaborators.transform(context, MutableHeaders(), b"nope")

    assert response.body == b"nope"
    assert response.headers["x-proxy-bypass"] == "1"


@pytest.mark.asyncio
async def test_redirect_points_to_origin_and_strips_validators(make_context):
    sink = MutableHeaders(
        {
            "etag": '"v1"',
            "cache-control": "max-age=60",
            "last-modified": "Mon, 01 Jan 2024 00:00:00 GMT",
            "content-encoding": "identity",
        }
    )

    response = await collaborators.redirect_to_origin(
        make_context("https://example.com/a b.png?x=1"), sink
    )

    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com/a%20b.png?x=1"
    assert response.headers["content-length"] == "0"
    for name in ("etag", "cache-control", "last-modified", "content-encoding"):
        assert name not in response.headers
