import httpx
import pytest

from app.features.presskit_analytics.clients.geolocation_client import (
    GeolocationClient,
    is_public_address,
)


def _client(handler) -> GeolocationClient:
    return GeolocationClient(
        base_url="http://geo.test/json", timeout=1.0, transport=httpx.MockTransport(handler)
    )


@pytest.mark.parametrize(
    "address, expected",
    [
        ("1.1.1.1", True),
        ("8.8.8.8", True),
        ("2606:4700:4700::1111", True),
        ("127.0.0.1", False),
        ("::1", False),
        ("10.1.2.3", False),
        ("203.0.113.7", False),
        ("192.168.0.10", False),
        ("169.254.1.1", False),
        ("0.0.0.0", False),
        ("unknown", False),
        ("", False),
        (None, False),
    ],
)
def test_is_public_address(address, expected):
    assert is_public_address(address) is expected


@pytest.mark.asyncio
async def test_lookup_formats_city_and_country():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(200, json={"city": "Austin", "country": "United States"})

    assert await _client(handler).lookup("8.8.8.8") == "Austin, United States"
    assert seen["url"].path == "/json/8.8.8.8"
    assert seen["url"].params["fields"] == "city,country"


@pytest.mark.asyncio
async def test_lookup_skips_private_addresses():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("private addresses must not be looked up")

    assert await _client(handler).lookup("192.168.1.1") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"status": "fail", "message": "reserved range"}),
        httpx.Response(200, json={"city": "", "country": "Germany"}),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, text="<html>"),
        httpx.Response(429, json={}),
    ],
)
async def test_lookup_unresolved_responses(response):
    assert await _client(lambda request: response).lookup("8.8.8.8") is None


@pytest.mark.asyncio
async def test_lookup_swallows_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    assert await _client(handler).lookup("8.8.8.8") is None
