# SPDX-License-Identifier: AGPL-3.0-or-later
"""JSON rendering for command output."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel


def _default_serializer(value: Any) -> Any:
    """Best-effort conversion for non-JSON-serializable objects."""

    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json", exclude_none=True)
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, set):
        return sorted(value)
    if hasattr(value, "to_dict") and callable(getattr(value, "to_dict")):
        return value.to_dict()
    return repr(value)


def safe_serialize(payload: Any) -> str:
    """Serialize payloads with sensible defaults for models and dataclasses."""

    return json.dumps(
        payload,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_default_serializer,
    )


__all__ = ["safe_serialize"]
