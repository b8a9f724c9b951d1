"""GraphQL client for the Zigzag Open API."""

from __future__ import annotations

import hashlib
import hmac
import re
import time
from logging import getLogger
from typing import TYPE_CHECKING

from returnsync.adapters.http_resilience import ResilientClient, raise_for_channel_status
from returnsync.domain.ports import ChannelError

from .schema import GraphQLResponse, OrderItemList

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from returnsync.config.http_resilience import ResilienceConfig
    from returnsync.config.zigzag import ZigzagConfig

log = getLogger(__name__)

GRAPHQL_PATH = "/graphql"
PAGE_SIZE = 50
_WHITESPACE = re.compile(r"\s+")

ORDER_ITEMS_QUERY = """
query($date_ymd_from: Int, $date_ymd_to: Int, $limit_count: Int, $skip_count: Int) {
  order_item_list(date_ymd_from: $date_ymd_from, date_ymd_to: $date_ymd_to,
    limit_count: $limit_count, skip_count: $skip_count) {
    total_count
    item_list {
      order_item_number
      quantity
      unit_price
      product_id
      status
      product_info { name options }
      order { order_number date_created date_paid }
    }
  }
}
"""

RETURN_ITEMS_QUERY = """
query($date_requested_ymd_from: Int, $date_requested_ymd_to: Int,
  $request_type: OrderItemRequestType, $limit_count: Int, $skip_count: Int) {
  requested_order_item_list(date_requested_ymd_from: $date_requested_ymd_from,
    date_requested_ymd_to: $date_requested_ymd_to, request_type: $request_type,
    limit_count: $limit_count, skip_count: $skip_count) {
    total_count
    item_list {
      order_item_number
      quantity
      unit_price
      product_id
      status
      product_info { name options }
      order { order_number date_created }
      active_request_list {
        order_item_request_number
        type
        status
        requested_quantity
        date_requested
      }
    }
  }
}
"""


def normalize_query(query: str) -> str:
    return _WHITESPACE.sub(" ", query).strip()


def build_authorization(*, access_key: str, secret_key: str, query: str, signed_date: str) -> str:
    """The signature is HMAC-SHA1 over ``{signed_date}.{normalized query}``."""

    message = f"{signed_date}.{normalize_query(query)}"
    signature = hmac.new(secret_key.encode(), message.encode(), hashlib.sha1).hexdigest()
    return (
        f"CEA algorithm=HmacSHA256, access-key={access_key}, "
        f"signed-date={signed_date}, signature={signature}"
    )


class ZigzagClient:
    def __init__(
        self,
        *,
        config: ZigzagConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        wall_clock_ms: Callable[[], int] = lambda: int(time.time() * 1000),
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._wall_clock_ms = wall_clock_ms
        self._http: ResilientClient | None = None

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

    async def execute(self, query: str, variables: Mapping[str, object]) -> dict[str, object]:
        authorization = build_authorization(
            access_key=self._config.access_key,
            secret_key=self._config.secret_key,
            query=query,
            signed_date=str(self._wall_clock_ms()),
        )
        response = await self._client().post(
            GRAPHQL_PATH,
            json={"query": query, "variables": dict(variables)},
            headers={"Authorization": authorization},
        )
        raise_for_channel_status(response, channel=self.name)
        result = GraphQLResponse.model_validate(response.json())
        if result.errors:
            messages = "; ".join(error.message for error in result.errors)
            raise ChannelError(f"{self.name}: GraphQL error: {messages[:300]}", channel=self.name)
        return result.data or {}

    async def order_items(self, *, ymd_from: int, ymd_to: int, skip: int) -> OrderItemList:
        data = await self.execute(
            ORDER_ITEMS_QUERY,
            {
                "date_ymd_from": ymd_from,
                "date_ymd_to": ymd_to,
                "limit_count": PAGE_SIZE,
                "skip_count": skip,
            },
        )
        return OrderItemList.model_validate(data.get("order_item_list") or {})

    async def returned_items(self, *, ymd_from: int, ymd_to: int, skip: int) -> OrderItemList:
        data = await self.execute(
            RETURN_ITEMS_QUERY,
            {
                "date_requested_ymd_from": ymd_from,
                "date_requested_ymd_to": ymd_to,
                "request_type": "RETURN",
                "limit_count": PAGE_SIZE,
                "skip_count": skip,
            },
        )
        return OrderItemList.model_validate(data.get("requested_order_item_list") or {})
