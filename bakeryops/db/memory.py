"""In-process gateway for local development and tests."""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional

from ..errors import NotFoundError
from . import Gateway, _stamp_new


class MemoryGateway(Gateway):
    def __init__(self, seed: Optional[Mapping[str, List[Mapping[str, Any]]]] = None):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.files: Dict[str, bytes] = {}
        for table, rows in (seed or {}).items():
            for row in rows:
                stamped = _stamp_new(row)
                self.tables.setdefault(table, {})[stamped["id"]] = stamped

    def _table(self, table: str) -> Dict[str, Dict[str, Any]]:
        return self.tables.setdefault(table, {})

    async def list(self, table, filters=None, order_by=None, descending=False):
        rows = [
            r for r in self._table(table).values()
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        if order_by:
            # rows without the field sort last in either direction
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing
        return copy.deepcopy(rows)

    async def get(self, table, doc_id):
        row = self._table(table).get(doc_id)
        return copy.deepcopy(row) if row is not None else None

    async def insert(self, table, data):
        row = _stamp_new(copy.deepcopy(dict(data)))
        self._table(table)[row["id"]] = row
        return copy.deepcopy(row)

    async def update(self, table, doc_id, data):
        rows = self._table(table)
        if doc_id not in rows:
            raise NotFoundError(table, doc_id)
        rows[doc_id].update(copy.deepcopy(dict(data)))
        return copy.deepcopy(rows[doc_id])

    async def delete(self, table, doc_id):
        self._table(table).pop(doc_id, None)

    async def upload(self, bucket, path, content, content_type):
        key = f"{bucket}/{path}"
        self.files[key] = bytes(content)
        return f"/storage/{key}"
