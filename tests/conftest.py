"""Shared fixtures: in-memory store so tests run without Firebase credentials."""
from __future__ import annotations

import asyncio
import os

# Set env vars BEFORE any app imports
os.environ["STORE_BACKEND"] = "memory"
os.environ["ENABLE_ORDER_POLLER"] = "false"
os.environ.setdefault("RECEIPT_TIMEZONE", "Asia/Kolkata")

import pytest

from bakeryops.db import get_gateway
from bakeryops.db.memory import MemoryGateway
from bakeryops.errors import PersistenceError, PlaybackError


def run(coro):
    return asyncio.run(coro)


SEED = {
    "categories": [
        {"id": "cat-cakes", "name": "Cakes", "display_order": 1, "is_active": True},
        {"id": "cat-breads", "name": "Breads", "display_order": 2, "is_active": True},
    ],
    "products": [
        {"id": "p-truffle", "name": "Truffle Cake", "price": 450.0, "category_id": "cat-cakes",
         "is_active": True, "barcode": "8901000000011", "product_type": "product",
         "attributes": [
             {"type": "egg", "options": [{"name": "Eggless", "extra_cost": 50}, {"name": "With Egg", "extra_cost": 0}]},
             {"type": "size", "options": [{"name": "1kg", "price_adjustment": 400}]},
         ]},
        {"id": "p-puff", "name": "Veg Puff", "price": 25.5, "category_id": "cat-breads",
         "is_active": True, "barcode": "8901000000028"},
        {"id": "p-old", "name": "Retired Bun", "price": 10.0, "is_active": False,
         "barcode": "8901000000035"},
    ],
    "combos": [
        {"id": "c-tea", "name": "Tea Time Combo", "original_price": 200.0, "discounted_price": 150.0,
         "is_active": True, "products": [{"name": "Veg Puff", "quantity": 2}, {"name": "Masala Tea", "quantity": 1}]},
    ],
    "cart_addons": [
        {"id": "a-candle", "name": "Candles", "price": 20.0, "status": True},
    ],
    "delivery_partners": [
        {"id": "dp-ravi", "name": "Ravi", "phone": "9000000001", "vehicle_type": "Bike",
         "is_available": True, "is_active": True, "rating": 4.6, "total_deliveries": 120},
        {"id": "dp-anil", "name": "Anil", "phone": "9000000002", "vehicle_type": "Scooter",
         "is_available": False, "is_active": True},
    ],
    "profiles": [
        {"id": "u-priya", "full_name": "Priya", "email": "priya@example.com", "phone": "9800000000",
         "loyalty_points": 40},
    ],
}


class FlakyGateway(MemoryGateway):
    """Memory gateway whose chosen calls fail like an unreachable store."""

    def __init__(self, *args, fail=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fail = set(fail)
        self.calls = []

    async def list(self, table, filters=None, order_by=None, descending=False):
        self.calls.append(("list", table, dict(filters or {})))
        if "list" in self.fail:
            raise PersistenceError("store unreachable")
        return await super().list(table, filters, order_by, descending)

    async def insert(self, table, data):
        if "insert" in self.fail or f"insert:{table}" in self.fail:
            raise PersistenceError("store unreachable")
        return await super().insert(table, data)

    async def update(self, table, doc_id, data):
        if f"update:{table}" in self.fail:
            raise PersistenceError("constraint violation")
        return await super().update(table, doc_id, data)


class RecordingSound:
    """AlertSound that records calls; set `blocked` to simulate an autoplay refusal."""

    def __init__(self, blocked=False):
        self.blocked = blocked
        self.events = []
        self.url = None

    def load(self, url):
        self.url = url

    async def play(self):
        if self.blocked:
            raise PlaybackError("play() failed because the user didn't interact with the document first")
        self.events.append("play")

    def pause(self):
        self.events.append("pause")

    def reset_position(self):
        self.events.append("reset")


@pytest.fixture()
def gateway():
    return MemoryGateway(SEED)


@pytest.fixture()
def client(gateway):
    """FastAPI TestClient (sync) wired to the in-memory gateway."""
    from fastapi.testclient import TestClient
    from bakeryops.main import app

    app.dependency_overrides[get_gateway] = lambda: gateway
    app.state.poller = None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.poller = None
