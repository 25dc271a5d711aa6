from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import aiohttp

from product_cart.cart.models import OrderLine, PriceList, Product, RecordContext
from product_cart.config import settings

logger = logging.getLogger(__name__)


class CartServiceError(Exception):
    """Remote cart service call failed (transport error or HTTP >= 400)."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class CartService(Protocol):
    async def list_price_lists(self) -> List[PriceList]: ...

    async def associate_price_list(self, parent_id: str, price_list_id: str) -> None: ...

    async def fetch_products(self, price_list_id: str, currency_code: str) -> List[Product]: ...

    async def submit_order_lines(self, parent_id: str, lines: Sequence[OrderLine]) -> None: ...

    async def fetch_record_context(self, record_id: str) -> RecordContext: ...


class HttpCartService:
    """
    JSON/HTTP client for the catalog + order service.

    GET  /pricebooks                          -> [{id, name}]
    PUT  /records/{parent}/pricebook          {priceListId}
    GET  /pricebooks/{id}/products?currency=  -> [{productId, ...}]
    POST /records/{parent}/lines              {lines: [...]}
    GET  /records/{id}                        -> {status, currencyCode}
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.base_url = (base_url or settings.service_url).rstrip("/")
        self.token = token if token is not None else settings.service_token
        self.timeout = timeout or settings.request_timeout
        self._session = session
        self._own_session = session is None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self._session

    async def close(self) -> None:
        if self._own_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            async with self._get_session().request(method, url, headers=self._headers(), **kwargs) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    logger.error("cart service error | %s %s | status=%s | %s", method, url, resp.status, text[:500])
                    raise CartServiceError(text or f"HTTP {resp.status}", status=resp.status)
                if resp.status == 204:
                    return None
                return await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            logger.error("cart service unreachable | %s %s | %s", method, url, e)
            raise CartServiceError(str(e)) from e

    async def list_price_lists(self) -> List[PriceList]:
        rows = await self._request("GET", "/pricebooks") or []
        return [PriceList.from_dict(r) for r in rows]

    async def associate_price_list(self, parent_id: str, price_list_id: str) -> None:
        await self._request("PUT", f"/records/{parent_id}/pricebook", json={"priceListId": price_list_id})

    async def fetch_products(self, price_list_id: str, currency_code: str) -> List[Product]:
        rows = await self._request("GET", f"/pricebooks/{price_list_id}/products", params={"currency": currency_code}) or []
        return [Product.from_dict(r) for r in rows]

    async def submit_order_lines(self, parent_id: str, lines: Sequence[OrderLine]) -> None:
        await self._request("POST", f"/records/{parent_id}/lines", json={"lines": [ln.to_dict() for ln in lines]})

    async def fetch_record_context(self, record_id: str) -> RecordContext:
        row = await self._request("GET", f"/records/{record_id}") or {}
        return RecordContext.from_dict(row)
