"""Coercion of SQL aggregate results into two-place Decimals."""

from __future__ import annotations

from decimal import Decimal

CENT = Decimal("0.01")


def as_money(value: object) -> Decimal:
    """SQLite hands sums back as float or Decimal depending on the driver; normalize."""

    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT)
