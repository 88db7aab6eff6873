# catalog_import/reconcile/price.py
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any


def vnd_to_usd(price_vnd: Any, exchange_rate: Any) -> float:
    """
    Fixed-rate conversion, rounded half-up to cents.
    254000 VND at 25400 -> 10.0
    """
    try:
        vnd = Decimal(str(price_vnd or 0))
        rate = Decimal(str(exchange_rate or 0))
    except InvalidOperation:
        return 0.0
    if rate <= 0:
        return 0.0
    return float((vnd / rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
