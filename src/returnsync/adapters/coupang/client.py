"""HTTP client for the Coupang Open API."""

from __future__ import annotations

import hashlib
import hmac
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from returnsync.adapters.http_resilience import ResilientClient, raise_for_channel_status

from .schema import OrderSheetPage, ReturnRequestPage
from .translator import to_kst_date

if TYPE_CHECKING:
    from collections.abc import Callable

    from returnsync.config.coupang import CoupangConfig
    from returnsync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

ORDER_SHEETS_PATH = "/v2/providers/openapi/apis/api/v4/vendors/{vendor_id}/ordersheets"
RETURN_REQUESTS_PATH = "/v2/providers/openapi/apis/api/v4/vendors/{vendor_id}/returnRequests"
PAGE_SIZE = 50


def signed_date(now: datetime) -> str:
    return now.astimezone(UTC).strftime("%y%m%dT%H%M%SZ")


def build_authorization(
    *,
    access_key: str,
    secret_key: str,
    method: str,
    path: str,
    query: str,
    now: datetime,
) -> str:
    """``CEA`` header: HMAC-SHA256 over date, method, path and the bare query string."""

    timestamp = signed_date(now)
    message = f"{timestamp}{method}{path}{query}"
    signature = hmac.new(secret_key.encode(), message.encode(), hashlib.sha256).hexdigest()
    return (
        f"CEA algorithm=HmacSHA256, access-key={access_key}, "
        f"signed-date={timestamp}, signature={signature}"
    )


class CoupangClient:
    def __init__(
        self,
        *,
        config: CoupangConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._clock = clock
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

    async def get_json(self, path: str, params: dict[str, str]) -> object:
        # The signature covers the exact query string, so it is encoded once here.
        query = urlencode(params)
        authorization = build_authorization(
            access_key=self._config.access_key,
            secret_key=self._config.secret_key,
            method="GET",
            path=path,
            query=query,
            now=self._clock(),
        )
        response = await self._client().get(
            f"{path}?{query}" if query else path,
            headers={
                "Authorization": authorization,
                "Content-Type": "application/json;charset=UTF-8",
            },
        )
        raise_for_channel_status(response, channel=self.name)
        return response.json() if response.content else None

    async def order_sheet_page(
        self,
        start: datetime,
        end: datetime,
        *,
        status: str,
        next_token: str | None = None,
    ) -> OrderSheetPage:
        params = self._window_params(start, end, status=status, next_token=next_token)
        payload = await self.get_json(ORDER_SHEETS_PATH.format(vendor_id=self._config.vendor_id), params)
        return OrderSheetPage.model_validate(payload or {})

    async def return_request_page(
        self,
        start: datetime,
        end: datetime,
        *,
        status: str,
        next_token: str | None = None,
    ) -> ReturnRequestPage:
        params = self._window_params(start, end, status=status, next_token=next_token)
        payload = await self.get_json(
            RETURN_REQUESTS_PATH.format(vendor_id=self._config.vendor_id), params
        )
        return ReturnRequestPage.model_validate(payload or {})

    @staticmethod
    def _window_params(
        start: datetime,
        end: datetime,
        *,
        status: str,
        next_token: str | None,
    ) -> dict[str, str]:
        params = {
            "createdAtFrom": to_kst_date(start).isoformat(),
            "createdAtTo": to_kst_date(end).isoformat(),
            "status": status,
            "maxPerPage": str(PAGE_SIZE),
        }
        if next_token:
            params["nextToken"] = next_token
        return params
