# bakeryops/routes/pos.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..db import Gateway, get_gateway
from ..errors import PersistenceError
from ..schemas.orders import CheckoutBody, CheckoutOut, QuoteBody, TotalsOut
from ..services.pricing import CustomerInfo, calculate_totals, load_cart, submit_pos_order
from ..utils.formatters import format_currency

router = APIRouter(prefix="/pos", tags=["pos"])


@router.post("/quote", response_model=TotalsOut)
async def quote(body: QuoteBody, gateway: Gateway = Depends(get_gateway)):
    """Price a cart against current catalog prices without saving anything."""
    cart = await load_cart(gateway, [line.model_dump() for line in body.items])
    totals = calculate_totals(list(cart), body.discount_percent)
    rounded = totals.rounded()
    return TotalsOut(**rounded, formatted_total=format_currency(rounded["total_amount"]))


@router.post("/checkout", response_model=CheckoutOut)
async def checkout(body: CheckoutBody, gateway: Gateway = Depends(get_gateway)):
    cart = await load_cart(gateway, [line.model_dump() for line in body.items])
    try:
        result = await submit_pos_order(
            gateway,
            cart,
            discount_percent=body.discount_percent,
            payment_method=body.payment_method,
            customer=CustomerInfo(**body.customer.model_dump()),
            amount_received=body.amount_received,
        )
    except PersistenceError as e:
        # cart stays with the client; operator just submits again
        raise HTTPException(status_code=500, detail=f"Payment failed. Please try again. ({e})")
    return CheckoutOut(order=result.order, receipt=result.receipt)
