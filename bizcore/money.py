# SPDX-License-Identifier: AGPL-3.0-or-later
"""Money-related helpers."""

from decimal import Decimal, ROUND_HALF_UP


def round_half_up_cents(value: float) -> int:
    """Round a currency amount to cents using half-up semantics."""
    quantized = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(quantized)


def to_cents(amount: float) -> int:
    """Dollars to whole cents, half-up."""
    return round_half_up_cents(Decimal(str(amount)) * 100)


def round_money(amount: float) -> float:
    return to_cents(amount) / 100


__all__ = ["round_half_up_cents", "round_money", "to_cents"]
