"""Persistence port: table-scoped CRUD plus a file bucket, all async."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Mapping, Optional
import uuid

from ..settings import settings


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


class Gateway(ABC):
    """
    What the services need from the hosted store.

    Concrete gateways only implement the generic table calls; the order /
    delivery-partner helpers are expressed on top of them.
    """

    @abstractmethod
    async def list(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def get(self, table: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def insert(self, table: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update(self, table: str, doc_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Merge `data` into an existing row; raises NotFoundError if it is missing."""

    @abstractmethod
    async def delete(self, table: str, doc_id: str) -> None:
        ...

    @abstractmethod
    async def upload(self, bucket: str, path: str, content: bytes, content_type: Optional[str]) -> str:
        """Store a file and return its public URL."""

    async def get_many(self, table: str, ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        out: Dict[str, Dict[str, Any]] = {}
        for doc_id in dict.fromkeys(i for i in ids if i):
            row = await self.get(table, doc_id)
            if row is not None:
                out[doc_id] = row
        return out

    # ---- order-facing contract ----------------------------------------------
    async def list_orders(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = {"status": status} if status else None
        return await self.list("orders", filters, order_by="created_at", descending=True)

    async def create_order(self, order: Mapping[str, Any]) -> Dict[str, Any]:
        return await self.insert("orders", order)

    async def update_order(self, order_id: str, partial: Mapping[str, Any]) -> Dict[str, Any]:
        return await self.update("orders", order_id, partial)

    async def update_delivery_partner(self, partner_id: str, partial: Mapping[str, Any]) -> Dict[str, Any]:
        return await self.update("delivery_partners", partner_id, partial)


def _stamp_new(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Fill the columns the hosted store would default on insert."""
    row = dict(data)
    row["id"] = row.get("id") or new_id()
    ts = now_iso()
    row.setdefault("created_at", ts)
    row.setdefault("updated_at", ts)
    return row


@lru_cache
def get_gateway() -> Gateway:
    """FastAPI dependency: the process-wide gateway chosen by STORE_BACKEND."""
    backend = settings.store_backend.strip().lower()
    if backend == "memory":
        from .memory import MemoryGateway
        return MemoryGateway()
    if backend == "firestore":
        from .firestore_gateway import FirestoreGateway
        return FirestoreGateway()
    raise RuntimeError(f"Unknown STORE_BACKEND {settings.store_backend!r} (use 'firestore' or 'memory')")
