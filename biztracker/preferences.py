# SPDX-License-Identifier: AGPL-3.0-or-later
"""Display preferences persisted as JSON in the user config directory."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from bizcore.contracts.preferences import DEFAULT_UNIT_THRESHOLDS, DisplayPreferences

logger = logging.getLogger(__name__)

PREFERENCES_FILENAME = "preferences.json"


class PreferencesStore:
    """Load and save :class:`DisplayPreferences`.

    Storage problems are logged and reported through the return value;
    nothing here raises for a missing, unreadable or unwritable file.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    @classmethod
    def from_settings(cls, settings) -> "PreferencesStore":
        return cls(settings.resolve_config_dir() / PREFERENCES_FILENAME)

    def load(self) -> Optional[DisplayPreferences]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return DisplayPreferences.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning("ignoring unreadable preferences at %s: %s", self.path, exc)
            return None

    def load_or_default(self) -> DisplayPreferences:
        return self.load() or DisplayPreferences()

    def save(self, prefs: DisplayPreferences) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(prefs.model_dump(by_alias=True, mode="json"), indent=2, sort_keys=True) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            logger.error("could not save preferences to %s: %s", self.path, exc)
            return False
        return True

    def clear(self) -> bool:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("could not remove preferences at %s: %s", self.path, exc)
            return False
        return True

    def update(self, key: str, value: Any) -> DisplayPreferences:
        """Set one field (snake_case or camelCase name) and save.

        ``unit_thresholds.<unit>`` sets a single per-unit threshold. Raises
        ``KeyError`` for unknown fields and ``ValidationError`` for bad values.
        """

        current = self.load_or_default()
        data = current.model_dump()
        if key.startswith(("unit_thresholds.", "unitThresholds.")):
            unit = key.split(".", 1)[1]
            data["unit_thresholds"] = {**data["unit_thresholds"], unit: value}
        else:
            field = _field_name(key)
            data[field] = value
        updated = DisplayPreferences.model_validate(data)
        self.save(updated)
        return updated


def _field_name(key: str) -> str:
    fields = DisplayPreferences.model_fields
    if key in fields:
        return key
    for name, info in fields.items():
        if key in (info.alias, to_camel(name)):
            return name
    raise KeyError(key)


__all__ = ["DEFAULT_UNIT_THRESHOLDS", "DisplayPreferences", "PREFERENCES_FILENAME", "PreferencesStore"]
