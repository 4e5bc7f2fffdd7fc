"""Async HTTP client for the admin API, plus a small fetch-and-hold wrapper for views."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class BakeryOpsClient:
    def __init__(self, base_url: str = "http://127.0.0.1:8000", client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=30)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BakeryOpsClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, fallback: str, **kwargs) -> Any:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            raise ApiError(0, f"{fallback}: {exc}") from exc
        if resp.is_error:
            try:
                detail = resp.json().get("detail")
            except ValueError:
                detail = None
            raise ApiError(resp.status_code, detail or fallback)
        return resp.json()

    # ---- orders --------------------------------------------------------------
    async def get_orders(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"status": status} if status else None
        return await self._request("GET", "/orders", "Failed to fetch orders", params=params)

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/orders/{order_id}", "Failed to fetch order")

    async def create_order(self, order: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/orders", "Failed to create order", json=order)

    async def update_order(self, order_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/orders/{order_id}", "Failed to update order", json=updates)

    async def set_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        return await self._request(
            "PUT", f"/orders/{order_id}/status", "Failed to update order status", json={"status": status}
        )

    async def assign_delivery_partner(self, order_id: str, partner_id: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/orders/{order_id}/assign-partner",
            "Failed to assign delivery partner",
            json={"partner_id": partner_id},
        )

    async def checkout(self, cart: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/pos/checkout", "Payment failed. Please try again.", json=cart)

    # ---- generic resources ---------------------------------------------------
    # resource is the URL segment: products, categories, combos, addons,
    # delivery-partners, profiles, promo-codes
    async def list(self, resource: str, **params: Any) -> List[Dict[str, Any]]:
        return await self._request("GET", f"/{resource}", f"Failed to fetch {resource}", params=params or None)

    async def create(self, resource: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/{resource}", f"Failed to create {resource}", json=data)

    async def update(self, resource: str, row_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/{resource}/{row_id}", f"Failed to update {resource}", json=data)

    async def delete(self, resource: str, row_id: str) -> None:
        await self._request("DELETE", f"/{resource}/{row_id}", f"Failed to delete {resource}")

    async def adjust_loyalty(self, profile_id: str, change_type: str, points: int) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/profiles/{profile_id}/loyalty",
            "Error updating reward points",
            json={"type": change_type, "points": points},
        )


@dataclass
class ResourceQuery(Generic[T]):
    """
    Holds the last result of a fetch: `loading`, `error`, `data`.

    Errors are kept on the object (and logged) instead of raised so a view
    can render them; `refetch()` tries again.
    """

    fetch: Callable[[], Awaitable[T]]
    data: Optional[T] = None
    error: Optional[str] = None
    loading: bool = False
    _loaded: bool = field(default=False, repr=False)

    async def refetch(self) -> Optional[T]:
        self.loading = True
        self.error = None
        try:
            self.data = await self.fetch()
            self._loaded = True
        except ApiError as exc:
            logger.error("Fetch failed: %s", exc)
            self.error = str(exc)
        finally:
            self.loading = False
        return self.data

    async def get(self) -> Optional[T]:
        """Fetch once, then serve the held value."""
        if not self._loaded:
            await self.refetch()
        return self.data
