"""HTTP client for the Naver Commerce API."""

from __future__ import annotations

import base64
import time
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

import bcrypt
import httpx

from returnsync.adapters.http_resilience import ResilientClient, raise_for_channel_status
from returnsync.domain.ports import ChannelError

from .schema import (
    CreateProductResponse,
    LastChangedStatus,
    LastChangedStatusesResponse,
    ProductOrderDetail,
    ProductOrderQueryResponse,
    TokenResponse,
)
from .translator import format_commerce_datetime

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from returnsync.config.http_resilience import ResilienceConfig
    from returnsync.config.smartstore import SmartstoreConfig

log = getLogger(__name__)

TOKEN_PATH = "/v1/oauth2/token"
LAST_CHANGED_PATH = "/v1/pay-order/seller/product-orders/last-changed-statuses"
PRODUCT_ORDER_QUERY_PATH = "/v1/pay-order/seller/product-orders/query"
CHANNEL_PRODUCT_PATH = "/v2/products/channel-products/{listing_id}"
ORIGIN_PRODUCT_PATH = "/v2/products/origin-products/{origin_id}"
CREATE_PRODUCT_PATH = "/v2/products"
TOKEN_REFRESH_MARGIN_SECONDS = 60.0
MAX_STATUS_PAGES = 50


def sign_client_secret(client_id: str, client_secret: str, timestamp_ms: int) -> str:
    """bcrypt the ``{client_id}_{timestamp}`` password with the secret as salt, base64 encoded."""

    password = f"{client_id}_{timestamp_ms}".encode()
    hashed = bcrypt.hashpw(password, client_secret.encode())
    return base64.b64encode(hashed).decode("ascii")


class SmartstoreClient:
    """Low-level client for one seller account: token handling plus the endpoints we use."""

    def __init__(
        self,
        *,
        config: SmartstoreConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        monotonic: Callable[[], float] = time.monotonic,
        wall_clock_ms: Callable[[], int] = lambda: int(time.time() * 1000),
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._monotonic = monotonic
        self._wall_clock_ms = wall_clock_ms
        self._http: ResilientClient | None = None
        self._token: str | None = None
        self._token_expires_at = 0.0

    @property
    def name(self) -> str:
        return self._resilience.name

    def _client(self) -> ResilientClient:
        if self._http is None:
            self._http = self._client_factory(self._resilience)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def invalidate_token(self) -> None:
        self._token = None
        self._token_expires_at = 0.0

    async def access_token(self) -> str:
        now = self._monotonic()
        if self._token and now < self._token_expires_at - TOKEN_REFRESH_MARGIN_SECONDS:
            return self._token

        timestamp = self._wall_clock_ms()
        form = {
            "client_id": self._config.client_id,
            "timestamp": str(timestamp),
            "client_secret_sign": sign_client_secret(
                self._config.client_id, self._config.client_secret, timestamp
            ),
            "grant_type": "client_credentials",
            "type": "SELF",
        }
        response = await self._client().post(TOKEN_PATH, data=form)
        if not response.is_success:
            raise ChannelError(
                f"{self.name}: token request failed ({response.status_code}): {response.text[:300]}",
                channel=self.name,
                status_code=response.status_code,
            )
        token = TokenResponse.model_validate(response.json())
        self._token = token.access_token
        self._token_expires_at = now + token.expires_in
        log.debug("Issued %s access token valid for %ss", self.name, token.expires_in)
        return token.access_token

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: object = None,
    ) -> object:
        response = await self._authorized(method, path, params=params, json=json)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            log.info("%s rejected the access token, refreshing once", self.name)
            self.invalidate_token()
            response = await self._authorized(method, path, params=params, json=json)
        raise_for_channel_status(response, channel=self.name)
        if not response.content:
            return None
        return response.json()

    async def _authorized(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None,
        json: object,
    ) -> httpx.Response:
        token = await self.access_token()
        headers = {"Authorization": f"Bearer {token}"}
        if json is None:
            return await self._client().request(method, path, params=params, headers=headers)
        return await self._client().request(method, path, params=params, headers=headers, json=json)

    async def last_changed_statuses(
        self,
        start: datetime,
        end: datetime,
        *,
        change_type: str | None = None,
    ) -> list[LastChangedStatus]:
        params = {
            "lastChangedFrom": format_commerce_datetime(start),
            "lastChangedTo": format_commerce_datetime(end),
        }
        if change_type:
            params["lastChangedType"] = change_type

        statuses: list[LastChangedStatus] = []
        for _ in range(MAX_STATUS_PAGES):
            payload = await self.request_json("GET", LAST_CHANGED_PATH, params=params)
            data = LastChangedStatusesResponse.model_validate(payload or {}).data
            if data is None:
                break
            statuses.extend(data.last_change_statuses)
            if data.more is None:
                break
            params = {
                **params,
                "lastChangedFrom": data.more.more_from,
                "moreSequence": data.more.more_sequence,
            }
        else:
            log.warning("%s: stopped paging status changes after %s pages", self.name, MAX_STATUS_PAGES)
        return statuses

    async def query_product_orders(self, product_order_ids: Sequence[str]) -> list[ProductOrderDetail]:
        if not product_order_ids:
            return []
        payload = await self.request_json(
            "POST",
            PRODUCT_ORDER_QUERY_PATH,
            json={"productOrderIds": list(product_order_ids)},
        )
        return ProductOrderQueryResponse.model_validate(payload or {}).data

    async def get_channel_product(self, listing_id: str) -> dict[str, Any]:
        return self._expect_object(
            await self.request_json("GET", CHANNEL_PRODUCT_PATH.format(listing_id=listing_id))
        )

    async def get_origin_product(self, origin_id: str) -> dict[str, Any]:
        return self._expect_object(
            await self.request_json("GET", ORIGIN_PRODUCT_PATH.format(origin_id=origin_id))
        )

    async def update_channel_product(self, listing_id: str, body: dict[str, Any]) -> None:
        await self.request_json("PUT", CHANNEL_PRODUCT_PATH.format(listing_id=listing_id), json=body)

    async def create_product(self, body: dict[str, Any]) -> CreateProductResponse:
        payload = await self.request_json("POST", CREATE_PRODUCT_PATH, json=body)
        return CreateProductResponse.model_validate(payload or {})

    def _expect_object(self, payload: object) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise ChannelError(f"{self.name}: unexpected product payload", channel=self.name)
        return cast("dict[str, Any]", payload)
