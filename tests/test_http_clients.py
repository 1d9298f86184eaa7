"""Tests for HTTP-based adapters."""

import asyncio

import httpx
import pytest

from code_scanner.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient


def _client(handler) -> HttpxOpenFoodFactsClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxOpenFoodFactsClient(
        base_url="https://off.test/api/v0",
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_off_client_fetches_product() -> None:
    seen_paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_paths.append(request.url.path)
        return httpx.Response(
            200, json={"status": 1, "product": {"product_name": "Cocoa"}}
        )

    client = _client(handler)

    payload = asyncio.run(client.get_product("4006381333931"))

    assert payload["status"] == 1
    assert seen_paths == ["/api/v0/product/4006381333931.json"]


def test_off_client_escapes_barcode_in_path() -> None:
    seen: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path)
        return httpx.Response(200, json={"status": 0})

    client = _client(handler)

    asyncio.run(client.get_product("AB/12"))

    assert seen == [b"/api/v0/product/AB%2F12.json"]


def test_off_client_raises_on_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    client = _client(handler)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.get_product("1"))


def test_off_client_create_sets_user_agent() -> None:
    client = HttpxOpenFoodFactsClient.create(
        base_url="https://off.test/api/v0", user_agent="code-scanner-test"
    )

    assert client.http_client.headers["User-Agent"] == "code-scanner-test"
    asyncio.run(client.close())
