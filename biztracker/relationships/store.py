# SPDX-License-Identifier: AGPL-3.0-or-later
"""Typed access to the backend's relationship endpoints.

List lookups never raise: transport failures and malformed bodies are
logged and come back as ``[]`` so views can render "no relationships".
Single lookups and every mutation raise :class:`ApiError` (or
:class:`EnvelopeError` for an unreadable body) and leave handling to the
caller.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from bizcore.contracts.measure import Measurement
from bizcore.contracts.relationship import (
    EntityType,
    PurchaseItemAttributes,
    Relationship,
    RelationshipType,
    SaleItemAttributes,
    build_relationship,
    parse_relationship,
)
from biztracker.api.client import ApiClient, ApiError
from biztracker.api.envelope import EnvelopeError, unwrap_list, unwrap_one
from biztracker.cache import QueryCache
from biztracker.relationships.jobs import ConversionJobStatus, ConversionJobTicket, ConversionResult

logger = logging.getLogger(__name__)

BASE_PATH = "/relationships"

COLLECTION_FOR = {
    EntityType.ITEM.value: "items",
    EntityType.PURCHASE.value: "purchases",
    EntityType.SALE.value: "sales",
    EntityType.ASSET.value: "assets",
}

MeasurementLike = Union[Measurement, Mapping[str, Any], None]


class DuplicateDerivedSource(ValueError):
    """A derived item already has a source; only one ``derived`` edge is allowed."""

    def __init__(self, derived_item_id: str, existing_source_id: str) -> None:
        super().__init__(
            f"item {derived_item_id} is already derived from {existing_source_id}"
        )
        self.derived_item_id = derived_item_id
        self.existing_source_id = existing_source_id


def _enum_value(value: Union[str, Enum, None]) -> Optional[str]:
    if value is None:
        return None
    return value.value if isinstance(value, Enum) else str(value)


def _wire_key(key: str) -> str:
    if key.startswith("_") or "_" not in key:
        return key
    return to_camel(key)


def _wire_value(value: Any) -> Any:
    if isinstance(value, Measurement):
        return value.to_wire()
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json", exclude_none=True)
    if isinstance(value, Enum):
        return value.value
    return value


def _patch_body(patch: Mapping[str, Any]) -> Dict[str, Any]:
    return {_wire_key(key): _wire_value(value) for key, value in patch.items()}


class RelationshipStore:
    def __init__(self, client: ApiClient, cache: Optional[QueryCache] = None) -> None:
        self.client = client
        self.cache = cache if cache is not None else QueryCache()

    # ------------------------------------------------------------------
    # Mutations

    def create(self, draft: Union[Relationship, Mapping[str, Any]]) -> Relationship:
        record = draft if isinstance(draft, BaseModel) else parse_relationship(draft)
        if record.relationship_type == RelationshipType.DERIVED.value:
            self._ensure_no_source(record.primary_id)
        body = self.client.post(BASE_PATH, body=record.to_payload())
        created = self._parse_one(body)
        logger.info(
            "relationship %s created: %s %s -> %s %s",
            created.id,
            created.primary_type.value,
            created.primary_id,
            created.secondary_type.value,
            created.secondary_id,
        )
        self._invalidate_for(created)
        return created

    def update(self, relationship_id: str, patch: Mapping[str, Any]) -> Relationship:
        body = self.client.patch(f"{BASE_PATH}/{relationship_id}", body=_patch_body(patch))
        updated = self._parse_one(body)
        self._invalidate_for(updated)
        return updated

    def remove(self, relationship_id: str) -> bool:
        self.client.delete(f"{BASE_PATH}/{relationship_id}")
        logger.info("relationship %s removed", relationship_id)
        # The endpoints of the deleted edge are not known here.
        self._invalidate_all()
        return True

    # ------------------------------------------------------------------
    # Lookups

    def get(self, relationship_id: str) -> Relationship:
        return self._parse_one(self.client.get(f"{BASE_PATH}/{relationship_id}"))

    def get_by_primary(
        self,
        primary_id: str,
        primary_type: Union[EntityType, str],
        relationship_type: Union[RelationshipType, str, None] = None,
    ) -> List[Relationship]:
        return self._safe_list("primary", primary_id, primary_type, relationship_type)

    def get_by_secondary(
        self,
        secondary_id: str,
        secondary_type: Union[EntityType, str],
        relationship_type: Union[RelationshipType, str, None] = None,
    ) -> List[Relationship]:
        return self._safe_list("secondary", secondary_id, secondary_type, relationship_type)

    def get_product_components(self, product_id: str) -> List[Relationship]:
        return self.get_by_primary(product_id, EntityType.ITEM, RelationshipType.PRODUCT_MATERIAL)

    def get_products_using_material(self, material_id: str) -> List[Relationship]:
        return self.get_by_secondary(material_id, EntityType.ITEM, RelationshipType.PRODUCT_MATERIAL)

    def get_derived_items(self, source_item_id: str) -> List[Relationship]:
        return self.get_by_secondary(source_item_id, EntityType.ITEM, RelationshipType.DERIVED)

    def get_source_for_derived_item(self, derived_item_id: str) -> Optional[Relationship]:
        sources = self.get_by_primary(derived_item_id, EntityType.ITEM, RelationshipType.DERIVED)
        return sources[0] if sources else None

    def get_purchase_items(self, purchase_id: str) -> List[Relationship]:
        return self.get_by_primary(purchase_id, EntityType.PURCHASE, RelationshipType.PURCHASE_ITEM)

    def get_item_purchases(self, item_id: str) -> List[Relationship]:
        return self.get_by_secondary(item_id, EntityType.ITEM, RelationshipType.PURCHASE_ITEM)

    def get_sale_items(self, sale_id: str) -> List[Relationship]:
        return self.get_by_primary(sale_id, EntityType.SALE, RelationshipType.SALE_ITEM)

    def get_item_sales(self, item_id: str) -> List[Relationship]:
        return self.get_by_secondary(item_id, EntityType.ITEM, RelationshipType.SALE_ITEM)

    # ------------------------------------------------------------------
    # Helper creators

    def create_product_material(
        self, product_id: str, material_id: str, measurements: MeasurementLike = None
    ) -> Relationship:
        return self.create(
            build_relationship(
                primary_id=product_id,
                primary_type=EntityType.ITEM,
                secondary_id=material_id,
                secondary_type=EntityType.ITEM,
                relationship_type=RelationshipType.PRODUCT_MATERIAL,
                measurements=measurements,
            )
        )

    def create_derived_item(
        self, derived_item_id: str, source_item_id: str, measurements: MeasurementLike = None
    ) -> Relationship:
        return self.create(
            build_relationship(
                primary_id=derived_item_id,
                primary_type=EntityType.ITEM,
                secondary_id=source_item_id,
                secondary_type=EntityType.ITEM,
                relationship_type=RelationshipType.DERIVED,
                measurements=measurements,
            )
        )

    def create_purchase_item(
        self,
        purchase_id: str,
        item_id: str,
        measurements: MeasurementLike = None,
        attributes: Union[PurchaseItemAttributes, Mapping[str, Any], None] = None,
    ) -> Relationship:
        fields: Dict[str, Any] = {}
        if attributes is not None:
            fields["purchase_item_attributes"] = attributes
        return self.create(
            build_relationship(
                primary_id=purchase_id,
                primary_type=EntityType.PURCHASE,
                secondary_id=item_id,
                secondary_type=EntityType.ITEM,
                relationship_type=RelationshipType.PURCHASE_ITEM,
                measurements=measurements,
                **fields,
            )
        )

    def create_sale_item(
        self,
        sale_id: str,
        item_id: str,
        measurements: MeasurementLike = None,
        attributes: Union[SaleItemAttributes, Mapping[str, Any], None] = None,
    ) -> Relationship:
        fields: Dict[str, Any] = {}
        if attributes is not None:
            fields["sale_item_attributes"] = attributes
        return self.create(
            build_relationship(
                primary_id=sale_id,
                primary_type=EntityType.SALE,
                secondary_id=item_id,
                secondary_type=EntityType.ITEM,
                relationship_type=RelationshipType.SALE_ITEM,
                measurements=measurements,
                **fields,
            )
        )

    # ------------------------------------------------------------------
    # Legacy conversion

    def convert_legacy(self, entity_id: str, entity_type: Union[EntityType, str]) -> ConversionResult:
        entity_type = EntityType(_enum_value(entity_type))
        body = self.client.post(f"{BASE_PATH}/convert/{entity_type.value}/{entity_id}")
        result = ConversionResult.model_validate(body if isinstance(body, Mapping) else {})
        logger.info(
            "legacy conversion for %s %s: %s",
            entity_type.value,
            entity_id,
            result.message or ("ok" if result.success else "no result"),
        )
        self.cache.invalidate("relationships")
        self._invalidate_entity(entity_type.value, entity_id)
        return result

    def convert_all(self) -> ConversionJobTicket:
        body = self.client.post(f"{BASE_PATH}/convert-all")
        try:
            return ConversionJobTicket.model_validate(unwrap_one(body))
        except ValidationError as exc:
            raise EnvelopeError(f"conversion ticket without a job id: {exc.error_count()} errors") from exc

    def get_conversion_job_status(self, job_id: str) -> ConversionJobStatus:
        body = self.client.get(f"{BASE_PATH}/jobs/{job_id}")
        try:
            status = ConversionJobStatus.model_validate(unwrap_one(body))
        except ValidationError as exc:
            raise EnvelopeError(f"unreadable status for job {job_id}") from exc
        if status.is_terminal:
            # The job wrote relationships server-side.
            self._invalidate_all()
        return status

    # ------------------------------------------------------------------
    # Internal helpers

    def _ensure_no_source(self, derived_item_id: str) -> None:
        existing = self._load_list("primary", derived_item_id, EntityType.ITEM, RelationshipType.DERIVED)
        if existing:
            raise DuplicateDerivedSource(derived_item_id, existing[0].secondary_id)

    def _safe_list(self, side, entity_id, entity_type, relationship_type) -> List[Relationship]:
        try:
            return self._load_list(side, entity_id, entity_type, relationship_type)
        except (ApiError, EnvelopeError) as exc:
            logger.warning(
                "relationship lookup by %s %s %s failed, returning no results: %s",
                side,
                _enum_value(entity_type),
                entity_id,
                exc,
            )
            return []

    def _load_list(self, side, entity_id, entity_type, relationship_type) -> List[Relationship]:
        type_value = _enum_value(entity_type)
        rel_value = _enum_value(relationship_type)
        key = ("relationships", side, entity_id, type_value, rel_value)

        def loader() -> List[Relationship]:
            params = {f"{side}Type": type_value, "relationshipType": rel_value}
            body = self.client.get(f"{BASE_PATH}/{side}/{entity_id}", params=params)
            return self._parse_many(unwrap_list(body))

        # Copies, so callers cannot edit cached records.
        return [record.model_copy(deep=True) for record in self.cache.fetch(key, loader)]

    def _parse_many(self, rows: List[Dict[str, Any]]) -> List[Relationship]:
        records: List[Relationship] = []
        for row in rows:
            try:
                records.append(parse_relationship(row))
            except (TypeError, ValueError) as exc:
                if isinstance(exc, ValidationError) and exc.errors():
                    reason = exc.errors()[0].get("msg")
                else:
                    reason = str(exc)
                logger.warning(
                    "skipping unreadable relationship %s: %s",
                    row.get("_id") or row.get("id") or "<no id>",
                    reason,
                )
        return records

    def _parse_one(self, body: Any) -> Relationship:
        row = unwrap_one(body)
        try:
            return parse_relationship(row)
        except ValidationError as exc:
            raise EnvelopeError(f"unreadable relationship record: {exc.error_count()} errors") from exc

    def _invalidate_entity(self, entity_type: str, entity_id: str) -> None:
        collection = COLLECTION_FOR.get(entity_type)
        if collection is None:
            return
        self.cache.discard((collection,))
        self.cache.invalidate(collection, entity_id)

    def _invalidate_all(self) -> None:
        self.cache.invalidate("relationships")
        for collection in COLLECTION_FOR.values():
            self.cache.invalidate(collection)

    def _invalidate_for(self, record: Relationship) -> None:
        self.cache.invalidate("relationships")
        self._invalidate_entity(record.primary_type.value, record.primary_id)
        self._invalidate_entity(record.secondary_type.value, record.secondary_id)


__all__ = ["BASE_PATH", "DuplicateDerivedSource", "RelationshipStore"]
