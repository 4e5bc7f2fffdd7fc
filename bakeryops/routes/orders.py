# bakeryops/routes/orders.py
from __future__ import annotations
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from ..db import Gateway, get_gateway
from ..deps import get_poller
from ..schemas.orders import AssignPartnerBody, OrderIn, StatusBody
from ..services import orders as svc
from ..services.notifications import PendingOrderPoller
from ..services.receipt import render_receipt_html
from ..services.workflow import can_assign_partner, next_status

router = APIRouter(prefix="/orders", tags=["orders"])


def _with_actions(order: Dict[str, Any]) -> Dict[str, Any]:
    """What the order board may offer next; advisory only."""
    nxt = next_status(order["status"]) if order.get("status") else None
    return {
        **order,
        "next_status": nxt.value if nxt else None,
        "can_assign_partner": can_assign_partner(order),
    }


@router.get("")
async def list_orders_endpoint(
    status: Optional[str] = Query(None, description="order status, or 'all'"),
    gateway: Gateway = Depends(get_gateway),
) -> List[Dict[str, Any]]:
    """
    Orders for the admin board, newest first, with customer profile and
    delivery partner attached.
    """
    return await svc.list_orders(gateway, status)


@router.post("")
async def create_order_endpoint(body: OrderIn, gateway: Gateway = Depends(get_gateway)):
    return await svc.create_order(gateway, body.model_dump(mode="json", exclude_none=True))


@router.get("/status-counts")
async def status_counts_endpoint(gateway: Gateway = Depends(get_gateway)) -> Dict[str, int]:
    return await svc.status_counts(gateway)


@router.post("/confirm-pending")
async def confirm_pending_endpoint(
    gateway: Gateway = Depends(get_gateway),
    poller: PendingOrderPoller = Depends(get_poller),
):
    confirmed = await svc.confirm_all_pending(gateway, poller)
    return {"ok": True, "confirmed": len(confirmed)}


@router.get("/{order_id}")
async def get_order_endpoint(order_id: str, gateway: Gateway = Depends(get_gateway)):
    return _with_actions(await svc.get_order(gateway, order_id))


@router.put("/{order_id}")
async def update_order_endpoint(
    order_id: str,
    updates: Dict[str, Any],
    gateway: Gateway = Depends(get_gateway),
    poller: PendingOrderPoller = Depends(get_poller),
):
    return await svc.update_order(gateway, order_id, updates, poller)


@router.put("/{order_id}/status")
async def change_status_endpoint(
    order_id: str,
    body: StatusBody,
    gateway: Gateway = Depends(get_gateway),
    poller: PendingOrderPoller = Depends(get_poller),
):
    return await svc.change_status(gateway, order_id, body.status.value, poller)


@router.post("/{order_id}/assign-partner")
async def assign_partner_endpoint(order_id: str, body: AssignPartnerBody, gateway: Gateway = Depends(get_gateway)):
    return await svc.assign_delivery_partner(gateway, order_id, body.partner_id)


@router.get("/{order_id}/invoice", response_class=HTMLResponse)
async def invoice_endpoint(order_id: str, gateway: Gateway = Depends(get_gateway)):
    order = await svc.get_order(gateway, order_id)
    return HTMLResponse(render_receipt_html(order, show_status=True))
