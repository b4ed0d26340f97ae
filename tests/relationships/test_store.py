# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from bizcore.contracts.measure import Measurement
from bizcore.contracts.relationship import (
    EntityType,
    ProductMaterialRelationship,
    PurchaseItemAttributes,
    RelationshipType,
)
from biztracker.api.client import ApiError
from biztracker.api.envelope import EnvelopeError
from biztracker.relationships.jobs import ConversionJobPoller
from biztracker.relationships.store import DuplicateDerivedSource, RelationshipStore


def _edge(primary, secondary, kind="product_material", primary_type="Item", **extra):
    return {
        "primaryId": primary,
        "primaryType": primary_type,
        "secondaryId": secondary,
        "secondaryType": "Item",
        "relationshipType": kind,
        **extra,
    }


def test_product_material_round_trip(store):
    created = store.create_product_material("P", "M", Measurement(kind="quantity", value=2))
    assert isinstance(created, ProductMaterialRelationship)
    assert created.id

    components = store.get_product_components("P")
    assert len(components) == 1
    assert components[0].secondary_id == "M"
    assert components[0].measurements.value == 2


@pytest.mark.parametrize("envelope", [True, False])
def test_lookups_tolerate_both_list_shapes(backend, store, envelope):
    backend.envelope = envelope
    backend.add_relationship(_edge("P", "M1"))
    backend.add_relationship(_edge("P", "M2"))
    backend.add_relationship(_edge("P", "S", kind="derived"))

    assert {r.secondary_id for r in store.get_product_components("P")} == {"M1", "M2"}
    assert len(store.get_by_primary("P", EntityType.ITEM)) == 3
    assert [r.primary_id for r in store.get_products_using_material("M1")] == ["P"]


def test_lookups_never_raise_on_transport_failure(down_api, caplog):
    store = RelationshipStore(down_api)
    with caplog.at_level(logging.WARNING):
        assert store.get_by_primary("P", EntityType.ITEM) == []
        assert store.get_by_secondary("M", "Item", RelationshipType.PRODUCT_MATERIAL) == []
        assert store.get_source_for_derived_item("D") is None
    assert "returning no results" in caplog.text


def test_lookups_never_raise_on_malformed_body(backend, store):
    backend.broken_lists = True
    assert store.get_item_sales("I") == []


def test_failed_lookup_is_retried_next_time(backend, store):
    backend.add_relationship(_edge("P", "M"))
    backend.broken_lists = True
    assert store.get_product_components("P") == []
    backend.broken_lists = False
    assert len(store.get_product_components("P")) == 1


def test_unreadable_records_are_skipped(backend, store, caplog):
    backend.add_relationship(_edge("P", "M"))
    backend.add_relationship(_edge("P", "X", secondaryType="Warehouse"))
    with caplog.at_level(logging.WARNING):
        results = store.get_by_primary("P", "Item")
    assert [r.secondary_id for r in results] == ["M"]
    assert "skipping unreadable relationship" in caplog.text


def test_results_are_cached_until_a_mutation(backend, store):
    backend.add_relationship(_edge("P", "M"))
    assert len(store.get_product_components("P")) == 1
    assert len(store.get_product_components("P")) == 1
    assert backend.requests.count("GET /relationships/primary/P") == 1

    store.create_product_material("P", "N", {"quantity": 1})
    assert len(store.get_product_components("P")) == 2
    assert backend.requests.count("GET /relationships/primary/P") == 2


def test_mutation_invalidates_entity_keys(store):
    store.cache.set(("items",), ["stale"])
    store.cache.set(("items", "M"), {"name": "stale"})
    store.cache.set(("items", "other"), {"name": "kept"})
    store.cache.set(("purchases",), ["kept"])

    store.create_product_material("P", "M")

    assert ("items",) not in store.cache
    assert ("items", "M") not in store.cache
    assert ("items", "other") in store.cache
    assert ("purchases",) in store.cache


def test_remove_invalidates_everything(backend, store):
    record = backend.add_relationship(_edge("P", "M"))
    store.cache.set(("sales", "S1"), {})
    assert len(store.get_product_components("P")) == 1

    assert store.remove(record["_id"]) is True
    assert ("sales", "S1") not in store.cache
    assert store.get_product_components("P") == []


def test_remove_unknown_raises(store):
    with pytest.raises(ApiError) as excinfo:
        store.remove("nope")
    assert excinfo.value.message == "Relationship not found"


def test_get_single_raises(store, backend):
    record = backend.add_relationship(_edge("P", "M"))
    assert store.get(record["_id"]).secondary_id == "M"
    with pytest.raises(ApiError):
        store.get("missing")


def test_update_patches_measurements(backend, store):
    record = backend.add_relationship(_edge("P", "M", measurements={"quantity": 1}))
    updated = store.update(record["_id"], {"measurements": Measurement(kind="weight", value=3, unit="oz")})
    assert updated.measurements == Measurement(kind="weight", value=3, unit="oz")
    assert backend.relationships[record["_id"]]["measurements"] == {"weight": 3.0, "weightUnit": "oz"}


def test_update_converts_snake_case_keys(backend, store):
    record = backend.add_relationship(_edge("P", "M"))
    store.update(record["_id"], {"notes": "cut to size", "is_legacy": False})
    assert backend.relationships[record["_id"]]["notes"] == "cut to size"
    assert "isLegacy" in backend.relationships[record["_id"]]


def test_create_rejected_by_backend(store):
    with pytest.raises(ApiError) as excinfo:
        store.create({"primaryId": "", "primaryType": "Item", "secondaryId": "M",
                      "secondaryType": "Item", "relationshipType": "product_material"})
    assert "Missing required fields" in excinfo.value.message


def test_second_derived_source_rejected(backend, store):
    store.create_derived_item("D", "S1", {"weight": 2, "weightUnit": "kg"})
    with pytest.raises(DuplicateDerivedSource) as excinfo:
        store.create_derived_item("D", "S2")
    assert excinfo.value.existing_source_id == "S1"
    assert len(backend.relationships) == 1
    assert store.get_source_for_derived_item("D").secondary_id == "S1"
    assert [r.primary_id for r in store.get_derived_items("S1")] == ["D"]


def test_derived_source_check_propagates_transport_errors(down_api):
    store = RelationshipStore(down_api)
    with pytest.raises(ApiError):
        store.create_derived_item("D", "S1")


def test_purchase_and_sale_helpers(backend, store):
    attrs = PurchaseItemAttributes.build(cost_per_unit=2.5, total_cost=10)
    store.create_purchase_item("PU", "I", {"quantity": 4}, attrs)
    store.create_sale_item("SA", "I", Measurement(kind="quantity", value=1), {"priceAtSale": 9, "totalPrice": 9})

    purchases = store.get_item_purchases("I")
    assert len(purchases) == 1
    assert purchases[0].purchase_item_attributes.original_cost == 2.5
    assert store.get_purchase_items("PU")[0].primary_type is EntityType.PURCHASE

    sales = store.get_sale_items("SA")
    assert sales[0].sale_item_attributes.price_at_sale == 9
    assert [r.primary_id for r in store.get_item_sales("I")] == ["SA"]


def test_convert_legacy(backend, store):
    store.cache.set(("relationships", "primary", "I1", "Item", None), [])
    result = store.convert_legacy("I1", EntityType.ITEM)
    assert result.success is True
    assert result.result == {"created": 2}
    assert "POST /relationships/convert/Item/I1" in backend.requests
    assert ("relationships", "primary", "I1", "Item", None) not in store.cache


def test_convert_legacy_rejects_unknown_entity_type(store):
    with pytest.raises(ValueError):
        store.convert_legacy("I1", "Warehouse")


def test_job_status_unreadable_raises(backend, store):
    backend.script_job("job-x", [{"progress": {}}])
    with pytest.raises(EnvelopeError):
        store.get_conversion_job_status("job-x")


def test_malformed_measurement_row_is_skipped(backend, store):
    backend.add_relationship(_edge("P", "N", measurements={"quantity": 1}))
    backend.add_relationship(_edge("P", "Q", measurements={"weight": {"value": 2}, "weightUnit": "kg"}))
    assert [r.secondary_id for r in store.get_by_primary("P", EntityType.ITEM)] == ["N"]


def test_completed_conversion_refreshes_lookups(backend, store):
    assert store.get_item_purchases("I1") == []
    store.cache.set(("items",), ["stale"])

    ConversionJobPoller(store, interval=1.0, sleep=lambda _: None).start_and_wait()
    backend.add_relationship(_edge("PU1", "I1", kind="purchase_item", primary_type="Purchase", isLegacy=True))

    purchases = store.get_item_purchases("I1")
    assert len(purchases) == 1
    assert purchases[0].is_legacy is True
    assert ("items",) not in store.cache


def test_running_job_status_keeps_cache(backend, store):
    backend.script_job("job-9", [{"status": "running"}])
    store.cache.set(("relationships", "primary", "P", "Item", None), [])
    store.get_conversion_job_status("job-9")
    assert ("relationships", "primary", "P", "Item", None) in store.cache


def test_returned_records_do_not_alias_the_cache(backend, store):
    backend.add_relationship(_edge("P", "M", metadata={"source": "import"}))
    first = store.get_product_components("P")[0]
    with pytest.raises(ValidationError):
        first.notes = "edited"
    first.metadata["source"] = "edited"
    assert store.get_product_components("P")[0].metadata == {"source": "import"}
