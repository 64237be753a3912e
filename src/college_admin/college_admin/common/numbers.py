from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round2(value: float) -> float:
    """Round half-up to two decimals (0.125 -> 0.13), as shown to users."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
