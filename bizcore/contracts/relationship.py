# SPDX-License-Identifier: AGPL-3.0-or-later
"""Typed, directed relationships between items, purchases, sales and assets.

A relationship is a tagged union over ``relationship_type``. Only the
purchase/sale variants carry an attribute bag, and each carries its own shape.
Records arrive from the backend in camelCase with the id under ``_id``, and
older endpoints wrap the record in a ``_doc`` document; ``parse_relationship``
accepts all of those.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from bizcore.contracts.measure import Measurement


class EntityType(str, Enum):
    ITEM = "Item"
    PURCHASE = "Purchase"
    SALE = "Sale"
    ASSET = "Asset"


class RelationshipType(str, Enum):
    DERIVED = "derived"
    PRODUCT_MATERIAL = "product_material"
    PURCHASE_ITEM = "purchase_item"
    PURCHASE_ASSET = "purchase_asset"
    SALE_ITEM = "sale_item"


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)


class PurchaseItemAttributes(_Wire):
    cost_per_unit: float = 0.0
    total_cost: float = 0.0
    original_cost: float = 0.0
    discount_amount: float = 0.0
    discount_percentage: float = 0.0
    purchased_by: str = "quantity"

    @classmethod
    def build(
        cls,
        cost_per_unit: float,
        total_cost: float,
        original_cost: Optional[float] = None,
        discount_amount: Optional[float] = None,
        discount_percentage: Optional[float] = None,
        purchased_by: str = "quantity",
    ) -> "PurchaseItemAttributes":
        return cls(
            cost_per_unit=cost_per_unit,
            total_cost=total_cost,
            original_cost=original_cost or cost_per_unit,
            discount_amount=discount_amount or 0.0,
            discount_percentage=discount_percentage or 0.0,
            purchased_by=purchased_by,
        )


class PurchaseAssetAttributes(_Wire):
    cost: float = 0.0
    total_cost: float = 0.0


class SaleItemAttributes(_Wire):
    price_at_sale: float = 0.0
    total_price: float = 0.0
    discount_amount: float = 0.0


class _RelationshipBase(_Wire):
    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id"))
    primary_id: str
    primary_type: EntityType
    secondary_id: str
    secondary_type: EntityType
    measurements: Optional[Measurement] = None
    is_legacy: bool = False
    notes: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("measurements", mode="before")
    @classmethod
    def _measurements_from_wire(cls, value: Any) -> Any:
        if value is None or isinstance(value, Measurement):
            return value
        if isinstance(value, Mapping):
            return Measurement.from_wire(value)
        return value

    @field_validator("is_legacy", mode="before")
    @classmethod
    def _legacy_default(cls, value: Any) -> Any:
        return bool(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_default(cls, value: Any) -> Any:
        return value or {}

    def to_payload(self) -> Dict[str, Any]:
        """camelCase body for create/update, without server-assigned fields."""

        body = self.model_dump(
            by_alias=True,
            mode="json",
            exclude={"id", "created_at", "updated_at", "measurements"},
            exclude_none=True,
        )
        if self.measurements is not None:
            body["measurements"] = self.measurements.to_wire()
        return body


class DerivedRelationship(_RelationshipBase):
    relationship_type: Literal["derived"] = "derived"


class ProductMaterialRelationship(_RelationshipBase):
    relationship_type: Literal["product_material"] = "product_material"


class PurchaseItemRelationship(_RelationshipBase):
    relationship_type: Literal["purchase_item"] = "purchase_item"
    purchase_item_attributes: PurchaseItemAttributes = Field(default_factory=PurchaseItemAttributes)


class PurchaseAssetRelationship(_RelationshipBase):
    relationship_type: Literal["purchase_asset"] = "purchase_asset"
    purchase_asset_attributes: PurchaseAssetAttributes = Field(default_factory=PurchaseAssetAttributes)


class SaleItemRelationship(_RelationshipBase):
    relationship_type: Literal["sale_item"] = "sale_item"
    sale_item_attributes: SaleItemAttributes = Field(default_factory=SaleItemAttributes)


Relationship = Annotated[
    Union[
        DerivedRelationship,
        ProductMaterialRelationship,
        PurchaseItemRelationship,
        PurchaseAssetRelationship,
        SaleItemRelationship,
    ],
    Field(discriminator="relationship_type"),
]

_ADAPTER: TypeAdapter[Relationship] = TypeAdapter(Relationship)

# Attribute bags that only belong to one variant; dropped from the others.
_FOREIGN_BAGS = {
    "purchaseItemAttributes": RelationshipType.PURCHASE_ITEM.value,
    "purchaseAssetAttributes": RelationshipType.PURCHASE_ASSET.value,
    "saleItemAttributes": RelationshipType.SALE_ITEM.value,
}


def _clean(raw: Mapping[str, Any]) -> Dict[str, Any]:
    doc = raw.get("_doc")
    data = dict(doc) if isinstance(doc, Mapping) else dict(raw)
    if "relationship_type" in data and "relationshipType" not in data:
        data["relationshipType"] = data.pop("relationship_type")
    kind = data.get("relationshipType")
    for bag, owner in _FOREIGN_BAGS.items():
        if bag in data and kind != owner:
            data.pop(bag)
        elif data.get(bag) is None:
            data.pop(bag, None)
    return data


def parse_relationship(raw: Mapping[str, Any]) -> Relationship:
    """Validate one backend record into its variant. Raises ``pydantic.ValidationError``."""

    return _ADAPTER.validate_python(_clean(raw))


def build_relationship(**fields: Any) -> Relationship:
    """Construct a draft (unsaved) relationship from snake_case fields."""

    plain = {key: value.value if isinstance(value, Enum) else value for key, value in fields.items()}
    return _ADAPTER.validate_python(_clean(plain))


def calculate_total_cost(measurement: Optional[Measurement], cost_per_unit: float) -> float:
    """Line cost for a purchase row: the active amount times the unit cost."""

    if measurement is None:
        return 0.0
    return measurement.value * cost_per_unit


__all__ = [
    "DerivedRelationship",
    "EntityType",
    "ProductMaterialRelationship",
    "PurchaseAssetAttributes",
    "PurchaseAssetRelationship",
    "PurchaseItemAttributes",
    "PurchaseItemRelationship",
    "Relationship",
    "RelationshipType",
    "SaleItemAttributes",
    "SaleItemRelationship",
    "build_relationship",
    "calculate_total_cost",
    "parse_relationship",
]
