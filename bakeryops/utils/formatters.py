# bakeryops/utils/formatters.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

import pytz

from ..settings import settings

Number = Union[Decimal, int, float, str]

CURRENCY_SYMBOL = "₹"
PAISE = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    """Convert via str so floats keep the digits they were written with."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(PAISE, rounding=ROUND_HALF_UP)


def group_indian(digits: str) -> str:
    """'1234567' -> '12,34,567' (last three digits, then pairs)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(amount: Number) -> str:
    """
    Rupee amount with Indian digit grouping.

    Whole amounts carry no decimals (``₹1,180``); anything with paise is
    shown with exactly two (``₹1,180.50``).
    """
    value = quantize_money(amount)
    sign = "-" if value < 0 else ""
    value = abs(value)
    whole, _, paise = f"{value:.2f}".partition(".")
    text = group_indian(whole)
    if paise != "00":
        text = f"{text}.{paise}"
    return f"{sign}{CURRENCY_SYMBOL}{text}"


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt


def to_local(value: Union[str, datetime]) -> datetime:
    tz = pytz.timezone(settings.receipt_timezone)
    return parse_timestamp(value).astimezone(tz)


def format_date(value: Union[str, datetime]) -> str:
    return to_local(value).strftime("%d/%m/%Y")


def format_time(value: Union[str, datetime]) -> str:
    return to_local(value).strftime("%I:%M %p")
