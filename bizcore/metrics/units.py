# SPDX-License-Identifier: AGPL-3.0-or-later
"""Unit tables and conversions for the continuous measurement families."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

KINDS = ("quantity", "weight", "length", "area", "volume")
CONTINUOUS_KINDS = ("weight", "length", "area", "volume")

# Multipliers to the family base unit: g, m, m2, l.
UNIT_MULTIPLIER: Dict[str, Dict[str, float]] = {
    "weight": {"g": 1.0, "kg": 1000.0, "oz": 28.349523125, "lb": 453.59237},
    "length": {"mm": 0.001, "cm": 0.01, "m": 1.0, "in": 0.0254, "ft": 0.3048, "yd": 0.9144},
    # area multipliers are the squares of the matching length multipliers
    "area": {
        "sqm": 1.0,
        "sqft": 0.09290304,
        "sqyd": 0.83612736,
        "acre": 4046.8564224,
        "ha": 10000.0,
    },
    "volume": {
        "ml": 0.001,
        "l": 1.0,
        "gal": 3.785411784,
        "floz": 0.0295735295625,
        "cu_ft": 28.316846592,
        "cu_m": 1000.0,
    },
}

DEFAULT_UNIT_FOR = {
    "quantity": "",
    "weight": "kg",
    "length": "m",
    "area": "sqm",
    "volume": "l",
}


class UnitMismatch(ValueError):
    """Raised when two units do not share a measurement family."""

    def __init__(self, from_unit: str, to_unit: str) -> None:
        super().__init__(f"Cannot convert {from_unit!r} to {to_unit!r}: units are not in one family")
        self.from_unit = from_unit
        self.to_unit = to_unit


def family_of(unit: str) -> Optional[str]:
    """Return the family a unit belongs to, or ``None`` when it is unknown."""

    for family, table in UNIT_MULTIPLIER.items():
        if unit in table:
            return family
    return None


def units_for(kind: str) -> List[str]:
    if kind == "quantity":
        return []
    if kind not in UNIT_MULTIPLIER:
        raise ValueError(f"Unknown measurement kind: {kind}")
    return list(UNIT_MULTIPLIER[kind].keys())


def default_unit_for(kind: str) -> str:
    return DEFAULT_UNIT_FOR.get(kind, "")


def _shared_table(from_unit: str, to_unit: str) -> Optional[Dict[str, float]]:
    for table in UNIT_MULTIPLIER.values():
        if from_unit in table and to_unit in table:
            return table
    return None


def convert_or_throw(value: float, from_unit: str, to_unit: str) -> float:
    """Convert ``value`` between two units of one family.

    Raises :class:`UnitMismatch` for cross-family or unknown units.
    """

    if from_unit == to_unit:
        return value
    table = _shared_table(from_unit, to_unit)
    if table is None:
        raise UnitMismatch(from_unit, to_unit)
    return value * table[from_unit] / table[to_unit]


def convert_or_pass_through(value: float, from_unit: str, to_unit: str) -> float:
    """Convert like :func:`convert_or_throw`, but hand back ``value`` unchanged on a mismatch.

    Only meant for display values; totals should use the strict variant.
    """

    try:
        return convert_or_throw(value, from_unit, to_unit)
    except UnitMismatch:
        logger.warning("Unit conversion failed: %s -> %s, value passed through", from_unit, to_unit)
        return value


convert = convert_or_pass_through


__all__ = [
    "CONTINUOUS_KINDS",
    "DEFAULT_UNIT_FOR",
    "KINDS",
    "UNIT_MULTIPLIER",
    "UnitMismatch",
    "convert",
    "convert_or_pass_through",
    "convert_or_throw",
    "default_unit_for",
    "family_of",
    "units_for",
]
