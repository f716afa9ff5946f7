"""Rental price estimation shown before checkout."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

_CENTS = Decimal("0.01")


def rental_days(start: datetime, end: datetime) -> int:
    """Whole rental days between two instants; any started day counts fully."""
    delta = abs(end - start)
    partial = delta - timedelta(days=delta.days)
    return delta.days + (1 if partial else 0)


def calculate_price(
    start: datetime,
    end: datetime,
    price_per_day: Decimal | float | int | str,
) -> Decimal:
    price = Decimal(str(price_per_day))
    if price < 0:
        raise ValueError("Price per day must not be negative.")
    total = price * rental_days(start, end)
    return total.quantize(_CENTS, rounding=ROUND_HALF_UP)


__all__ = ["calculate_price", "rental_days"]
