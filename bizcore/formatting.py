# SPDX-License-Identifier: AGPL-3.0-or-later
"""Display formatting for amounts, units and labels."""

from __future__ import annotations

from typing import Optional

UNIT_LABELS = {
    "sqft": "sq ft",
    "sqm": "sq m",
    "sqyd": "sq yd",
    "floz": "fl oz",
    "cu_ft": "cu ft",
    "cu_m": "cu m",
}

RELATIONSHIP_TYPE_LABELS = {
    "derived": "Derived From",
    "product_material": "Uses Material",
    "purchase_item": "Purchased Item",
    "purchase_asset": "Purchased Asset",
    "sale_item": "Sold Item",
}

PRICE_TYPE_FAMILY = {
    "per_weight_unit": "weight",
    "per_length_unit": "length",
    "per_area_unit": "area",
    "per_volume_unit": "volume",
}


def _title(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.replace("_", " ").split(" "))


def format_currency(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_unit(unit: str) -> str:
    return UNIT_LABELS.get(unit, unit)


def format_measurement_type(kind: str) -> str:
    return _title(kind)


def format_price_type(price_type: str, unit: Optional[str] = None) -> str:
    if price_type == "each":
        return "Each"
    family = PRICE_TYPE_FAMILY.get(price_type)
    if family:
        return f"Per {format_unit(unit) if unit else f'{family} unit'}"
    return _title(price_type)


def format_status(status: str) -> str:
    """``partially_received`` -> ``Partially Received``."""

    return _title(status)


def relationship_type_label(relationship_type: str) -> str:
    return RELATIONSHIP_TYPE_LABELS.get(relationship_type, relationship_type)


__all__ = [
    "PRICE_TYPE_FAMILY",
    "format_currency",
    "format_measurement_type",
    "format_price_type",
    "format_status",
    "format_unit",
    "relationship_type_label",
]
