# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

import pytest
from pydantic import ValidationError

from bizcore.contracts.measure import Measurement
from bizcore.metrics.units import UnitMismatch


def test_flat_wire_shape_picks_active_field():
    m = Measurement.from_wire({"quantity": 0, "weight": 2.5, "weightUnit": "kg", "length": 0})
    assert (m.kind, m.value, m.unit) == ("weight", 2.5, "kg")


def test_flat_wire_shape_falls_back_to_quantity():
    m = Measurement.from_wire({"quantity": 3, "weight": 0, "weightUnit": "lb"})
    assert (m.kind, m.value, m.unit) == ("quantity", 3.0, "")


def test_descriptor_wire_shape():
    m = Measurement.from_wire({"kind": "quantity", "value": 2})
    assert m.kind == "quantity"
    assert m.value == 2


def test_empty_payload_is_none():
    assert Measurement.from_wire({}) is None
    assert Measurement.from_wire(None) is None


def test_missing_unit_gets_family_default():
    assert Measurement(kind="area", value=4).unit == "sqm"
    assert Measurement.from_wire({"volume": 2}).unit == "l"


def test_rejects_negative_and_foreign_units():
    with pytest.raises(ValidationError):
        Measurement(kind="weight", value=-1, unit="kg")
    with pytest.raises(ValidationError):
        Measurement(kind="weight", value=1, unit="sqft")
    with pytest.raises(ValidationError):
        Measurement(kind="quantity", value=1, unit="kg")


def test_to_wire_emits_flat_shape():
    assert Measurement(kind="length", value=3, unit="ft").to_wire() == {"length": 3.0, "lengthUnit": "ft"}
    assert Measurement(kind="quantity", value=2).to_wire() == {"quantity": 2.0}


def test_converted_to_is_strict():
    m = Measurement(kind="weight", value=2, unit="kg")
    assert m.converted_to("g").value == pytest.approx(2000)
    with pytest.raises(UnitMismatch):
        m.converted_to("sqft")


def test_for_item_uses_tracking_type():
    by_weight = Measurement.for_item("weight", quantity=4, amount=2, unit="lb")
    assert (by_weight.kind, by_weight.value, by_weight.unit) == ("weight", 2, "lb")
    by_count = Measurement.for_item("quantity", quantity=4, amount=2, unit="lb")
    assert (by_count.kind, by_count.value) == ("quantity", 4)


def test_describe():
    assert Measurement(kind="quantity", value=3).describe() == "3 units"
    assert Measurement(kind="weight", value=2.5, unit="kg").describe() == "2.5 kg"
    assert Measurement(kind="area", value=12, unit="sqft").describe() == "12 sq ft"


def test_non_numeric_amount_is_a_value_error():
    with pytest.raises(ValueError):
        Measurement.from_wire({"weight": {"value": 2}, "weightUnit": "kg"})
