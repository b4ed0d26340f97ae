# SPDX-License-Identifier: AGPL-3.0-or-later
"""Inventory, sale, purchase and asset contracts as served by the backend."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bizcore.contracts.measure import Measurement
from bizcore.metrics.units import CONTINUOUS_KINDS, default_unit_for

TrackingType = Literal["quantity", "weight", "length", "area", "volume"]
ItemType = Literal["material", "product", "both"]
PriceType = Literal["each", "per_weight_unit", "per_length_unit", "per_area_unit", "per_volume_unit"]


class _Doc(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id"))


class Item(_Doc):
    name: str
    sku: str = ""
    category: str = ""
    tracking_type: TrackingType = "quantity"
    item_type: ItemType = "material"
    quantity: float = 0
    weight: float = 0
    weight_unit: str = "lb"
    length: float = 0
    length_unit: str = "in"
    area: float = 0
    area_unit: str = "sqft"
    volume: float = 0
    volume_unit: str = "l"
    price: float = 0
    price_type: PriceType = "each"
    cost: Optional[float] = None
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    last_updated: Optional[datetime] = None

    @property
    def is_continuous(self) -> bool:
        return self.tracking_type in CONTINUOUS_KINDS

    def measurement_value(self) -> float:
        """Stock on hand in the item's tracking family (count for quantity items)."""

        if self.is_continuous:
            return float(getattr(self, self.tracking_type) or 0)
        return float(self.quantity or 0)

    def measurement_unit(self) -> str:
        if self.is_continuous:
            return getattr(self, f"{self.tracking_type}_unit") or default_unit_for(self.tracking_type)
        return ""

    def measurement(self) -> Measurement:
        return Measurement.for_item(
            self.tracking_type,
            quantity=self.quantity,
            amount=self.measurement_value(),
            unit=self.measurement_unit(),
        )


class SaleLine(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    item: Union[str, Dict[str, Any], None] = None
    name: str = ""
    quantity: float = 0
    weight: float = 0
    weight_unit: Optional[str] = None
    price_at_sale: float = 0


class Sale(_Doc):
    customer_name: Optional[str] = None
    order_number: Optional[str] = None
    items: List[SaleLine] = Field(default_factory=list)
    subtotal: float = 0
    tax_rate: float = 0
    tax_amount: float = 0
    discount_amount: float = 0
    total: float = 0
    payment_method: str = "cash"
    status: str = "completed"
    created_at: Optional[datetime] = None


class PurchaseLine(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    item: Union[str, Dict[str, Any], None] = None
    name: str = ""
    quantity: float = 0
    cost_per_unit: float = 0
    total_cost: float = 0


class Supplier(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Purchase(_Doc):
    supplier: Supplier = Field(default_factory=Supplier)
    invoice_number: Optional[str] = None
    purchase_date: Optional[datetime] = None
    items: List[PurchaseLine] = Field(default_factory=list)
    subtotal: float = 0
    tax_amount: float = 0
    shipping_cost: float = 0
    total: float = 0
    payment_method: str = "cash"
    status: str = "received"
    created_at: Optional[datetime] = None


class Asset(_Doc):
    name: str
    category: str = ""
    status: str = "active"
    purchase_price: float = 0
    current_value: float = 0


__all__ = [
    "Asset",
    "Item",
    "ItemType",
    "PriceType",
    "Purchase",
    "PurchaseLine",
    "Sale",
    "SaleLine",
    "Supplier",
    "TrackingType",
]
