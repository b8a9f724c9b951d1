from __future__ import annotations

import asyncio

import httpx
import pytest

from returnsync.adapters.http_resilience import ResilientClient, raise_for_channel_status
from returnsync.config.http_resilience import CacheConfig, ResilienceConfig
from returnsync.domain.ports import ChannelError, ListingNotFoundError


def _response(status: int, text: str = "", path: str = "/v2/products/1") -> httpx.Response:
    return httpx.Response(status, text=text, request=httpx.Request("GET", f"https://example.test{path}"))


def test_success_passes_through() -> None:
    raise_for_channel_status(_response(200, "{}"), channel="smartstore-a")


def test_not_found_status_raises_listing_not_found() -> None:
    with pytest.raises(ListingNotFoundError) as excinfo:
        raise_for_channel_status(_response(404, "gone"), channel="smartstore-b")

    assert excinfo.value.status_code == 404
    assert excinfo.value.channel == "smartstore-b"
    assert "/v2/products/1" in str(excinfo.value)


@pytest.mark.parametrize("body", ["Product not found", "존재하지 않는 상품입니다."])
def test_not_found_message_raises_listing_not_found(body: str) -> None:
    with pytest.raises(ListingNotFoundError):
        raise_for_channel_status(_response(400, body), channel="smartstore-b")


def test_other_failures_raise_channel_error() -> None:
    with pytest.raises(ChannelError) as excinfo:
        raise_for_channel_status(_response(500, "boom"), channel="coupang")

    assert not isinstance(excinfo.value, ListingNotFoundError)
    assert excinfo.value.status_code == 500


def test_custom_not_found_statuses() -> None:
    with pytest.raises(ChannelError) as excinfo:
        raise_for_channel_status(_response(404, "missing"), channel="zigzag", not_found_statuses=())

    assert not isinstance(excinfo.value, ListingNotFoundError)


def test_transport_errors_are_wrapped_in_channel_error() -> None:
    async def failing(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = ResilientClient(ResilienceConfig(name="coupang", base_url="https://example.test"))
    client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        transport=httpx.MockTransport(failing), base_url="https://example.test"
    )

    with pytest.raises(ChannelError, match="coupang: GET /ping failed") as excinfo:
        asyncio.run(client.get("/ping"))

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_unknown_cache_backend_is_rejected() -> None:
    config = ResilienceConfig(name="x", cache=CacheConfig(backend="redis"))  # type: ignore[arg-type]

    with pytest.raises(ValueError, match="Unsupported cache backend"):
        ResilientClient(config)
