# SPDX-License-Identifier: AGPL-3.0-or-later
"""User display preferences consumed by the stock aggregates."""

from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_UNIT_THRESHOLDS: Dict[str, float] = {"kg": 1, "g": 500, "lb": 2, "oz": 32}


class DisplayPreferences(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    low_stock_alerts_enabled: bool = True
    quantity_threshold: float = Field(default=5, ge=0)
    unit_thresholds: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_UNIT_THRESHOLDS))
    fallback_threshold: float = Field(default=5, ge=0)
    default_view_mode: Literal["list", "grid"] = "list"
    default_group_by: Literal["none", "category", "itemType"] = "none"

    def threshold_for(self, unit: str) -> float:
        return self.unit_thresholds.get(unit, self.fallback_threshold)


__all__ = ["DEFAULT_UNIT_THRESHOLDS", "DisplayPreferences"]
