from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime
from decimal import Decimal, getcontext
from typing import Optional


getcontext().prec = 28


def month_end(year: int, month: int) -> date:
    last_day = monthrange(year, month)[1]
    return date(year, month, last_day)


def quantize_amount(amount: Decimal, quantum: Decimal, rounding: str) -> Decimal:
    return amount.quantize(quantum, rounding=rounding)


def safe_average(total: Decimal, count: int, quantum: Decimal, rounding: str) -> Decimal:
    if count <= 0:
        return Decimal("0")
    return quantize_amount(total / Decimal(count), quantum, rounding)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    if value is None or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value}") from exc


def format_amount(amount: Decimal) -> str:
    if amount == amount.to_integral_value():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"
