# bakeryops/schemas/orders.py
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from ..services.workflow import OrderStatus


class Variation(BaseModel):
    name: str
    price_adjustment: float = Field(0, ge=0)


class ComboSubItem(BaseModel):
    name: str
    quantity: int = 1
    sub_total: Optional[float] = None


class OrderLineItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "product"
    name: str
    image_url: Optional[str] = None
    quantity: int = Field(..., ge=1)
    base_price: float = Field(..., ge=0)
    total_price: float = Field(..., ge=0)
    variations: Optional[Dict[str, Variation]] = None
    special_instructions: Optional[str] = None
    combo_items: Optional[List[ComboSubItem]] = None


class OrderIn(BaseModel):
    # online channels send extra columns we don't know about; keep them
    model_config = ConfigDict(extra="allow")

    order_number: Optional[str] = None
    contact_name: str
    contact_phone: Optional[str] = None
    user_id: Optional[str] = None
    items: List[OrderLineItem] = []
    subtotal: Optional[float] = None
    tax_amount: Optional[float] = None
    delivery_fee: Optional[float] = None
    discount_amount: Optional[float] = None
    total_amount: float
    status: Optional[OrderStatus] = None
    delivery_partner_id: Optional[str] = None
    delivery_notes: Optional[str] = None
    delivery_address: Optional[Union[str, Dict[str, Any]]] = None
    special_instructions: Optional[str] = None
    estimated_delivery_time: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    pos: Optional[bool] = False


class StatusBody(BaseModel):
    status: OrderStatus


class AssignPartnerBody(BaseModel):
    partner_id: str


# ---- POS ---------------------------------------------------------------------
class AttributeIn(BaseModel):
    # the surcharge is looked up in the catalog
    type: str
    name: str


class CartLineIn(BaseModel):
    id: str
    type: Literal["product", "combo", "addon"] = "product"
    quantity: int = Field(1, ge=1)
    attributes: List[AttributeIn] = []
    notes: Optional[str] = None


class CustomerIn(BaseModel):
    name: str = ""
    phone: str = ""
    address: str = ""


class QuoteBody(BaseModel):
    items: List[CartLineIn]
    discount_percent: float = Field(0, ge=0, le=100)


class CheckoutBody(QuoteBody):
    payment_method: Literal["cash", "card", "upi"] = "cash"
    customer: CustomerIn = CustomerIn()
    amount_received: Optional[float] = None


class TotalsOut(BaseModel):
    subtotal: float
    discount_amount: float
    tax_amount: float
    delivery_fee: float
    total_amount: float
    formatted_total: str


class CheckoutOut(BaseModel):
    order: Dict[str, Any]
    receipt: str
