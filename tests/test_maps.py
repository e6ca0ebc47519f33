import base64
import io

import httpx
import pytest
from fastapi import HTTPException
from PIL import Image

from cityguess.models.game import City
from cityguess.services.maps import StaticMapClient, crop_bottom, to_data_url

CITY = City(city="Testville", state="New Jersey", latitude=40.0, longitude=-74.0, population="1000", rank="1")


def png_bytes(width=64, height=48):
    out = io.BytesIO()
    Image.new("RGB", (width, height), color="green").save(out, format="PNG")
    return out.getvalue()


def test_crop_bottom_removes_watermark_rows():
    cropped = crop_bottom(png_bytes(64, 48), pixels=20)
    with Image.open(io.BytesIO(cropped)) as img:
        assert img.size == (64, 28)


def test_to_data_url():
    assert to_data_url(b"abc") == "data:image/png;base64,YWJj"


def test_interactive_map_url_carries_key():
    url = StaticMapClient("secret-key").interactive_map_url()
    assert "key=secret-key" in url
    assert "maptype=satellite" in url


async def test_city_image_request():
    seen = []

    def handler(request: httpx.Request):
        seen.append(request)
        return httpx.Response(200, content=png_bytes(640, 400))

    client = StaticMapClient("k", transport=httpx.MockTransport(handler))
    data_url = await client.get_city_image(CITY)

    assert data_url.startswith("data:image/png;base64,")
    raw = base64.b64decode(data_url.split(",", 1)[1])
    with Image.open(io.BytesIO(raw)) as img:
        assert img.size == (640, 380)

    params = seen[0].url.params
    assert params["center"] == "40.0,-74.0"
    assert params["maptype"] == "satellite"
    assert params["key"] == "k"


async def test_guess_map_has_both_markers():
    seen = []

    def handler(request: httpx.Request):
        seen.append(request)
        return httpx.Response(200, content=b"png")

    client = StaticMapClient("k", transport=httpx.MockTransport(handler))
    data_url = await client.get_guess_map(CITY, 41.0, -75.5)

    assert data_url == to_data_url(b"png")
    markers = seen[0].url.params.get_list("markers")
    assert any("41.0,-75.5" in m for m in markers)
    assert any("40.0,-74.0" in m for m in markers)


async def test_provider_error_is_bad_gateway():
    client = StaticMapClient("k", transport=httpx.MockTransport(lambda r: httpx.Response(403)))
    with pytest.raises(HTTPException) as exc:
        await client.get_guess_map(CITY, 41.0, -75.5)
    assert exc.value.status_code == 502


async def test_unreachable_provider_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("no route", request=request)

    client = StaticMapClient("k", transport=httpx.MockTransport(handler))
    with pytest.raises(HTTPException) as exc:
        await client.get_city_image(CITY)
    assert exc.value.status_code == 503


async def test_non_image_body_is_bad_gateway():
    client = StaticMapClient("k", transport=httpx.MockTransport(lambda r: httpx.Response(200, content=b"<html>quota</html>")))
    with pytest.raises(HTTPException) as exc:
        await client.get_city_image(CITY)
    assert exc.value.status_code == 502
