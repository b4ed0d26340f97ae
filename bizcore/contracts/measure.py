# SPDX-License-Identifier: AGPL-3.0-or-later
"""Measurement descriptor: how much of an entity a record refers to."""

from __future__ import annotations

from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bizcore.formatting import format_unit
from bizcore.metrics.units import CONTINUOUS_KINDS, convert_or_throw, default_unit_for, family_of

MeasurementKind = Literal["quantity", "weight", "length", "area", "volume"]


def _amount(raw: Any) -> float:
    try:
        return float(raw or 0)
    except (TypeError, ValueError):
        raise ValueError(f"measurement amount {raw!r} is not a number") from None


def _format_number(value: float) -> str:
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    return text or "0"


class Measurement(BaseModel):
    """A single active ``(value, unit)`` pair tagged with its kind.

    The backend keeps the older flat layout (``weight`` + ``weightUnit`` and
    friends); ``from_wire``/``to_wire`` translate between the two.
    """

    model_config = ConfigDict(frozen=True)

    kind: MeasurementKind = "quantity"
    value: float = Field(default=0.0, ge=0)
    unit: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fill_unit(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("kind") in CONTINUOUS_KINDS and not data.get("unit"):
            data = {**data, "unit": default_unit_for(data["kind"])}
        return data

    @model_validator(mode="after")
    def _check_unit(self) -> "Measurement":
        if self.kind == "quantity":
            if self.unit:
                raise ValueError("quantity measurements carry no unit")
        elif family_of(self.unit) != self.kind:
            raise ValueError(f"unit {self.unit!r} is not a {self.kind} unit")
        return self

    @classmethod
    def from_wire(cls, data: Optional[Mapping[str, Any]]) -> Optional["Measurement"]:
        """Build a descriptor from either wire shape; empty payloads give ``None``."""

        if not data:
            return None
        if "kind" in data:
            return cls(
                kind=data["kind"],
                value=_amount(data.get("value")),
                unit=data.get("unit") or "",
            )
        for kind in CONTINUOUS_KINDS:
            amount = data.get(kind)
            if amount:
                return cls(kind=kind, value=_amount(amount), unit=data.get(f"{kind}Unit") or "")
        if "quantity" in data:
            return cls(kind="quantity", value=_amount(data.get("quantity")))
        return None

    @classmethod
    def for_item(
        cls,
        tracking_type: str,
        *,
        quantity: float = 0,
        amount: float = 0,
        unit: str = "",
    ) -> "Measurement":
        if tracking_type in CONTINUOUS_KINDS:
            return cls(kind=tracking_type, value=amount, unit=unit)
        return cls(kind="quantity", value=quantity)

    def to_wire(self) -> Dict[str, Any]:
        if self.kind == "quantity":
            return {"quantity": self.value}
        return {self.kind: self.value, f"{self.kind}Unit": self.unit}

    def converted_to(self, unit: str) -> "Measurement":
        """Return the same amount expressed in ``unit``; raises ``UnitMismatch``."""

        if self.kind == "quantity":
            raise ValueError("quantity measurements cannot change unit")
        return Measurement(kind=self.kind, value=convert_or_throw(self.value, self.unit, unit), unit=unit)

    def describe(self) -> str:
        if self.kind == "quantity":
            return f"{_format_number(self.value)} units"
        return f"{_format_number(self.value)} {format_unit(self.unit)}"


__all__ = ["Measurement", "MeasurementKind"]
