# SPDX-License-Identifier: AGPL-3.0-or-later
"""In-memory query cache with prefix invalidation.

Keys are tuples such as ``("items",)``, ``("items", item_id)`` or
``("relationships", "primary", entity_id, entity_type, relationship_type)``.
Invalidating ``("relationships",)`` drops every relationship query at once.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Hashable, Tuple

logger = logging.getLogger(__name__)

Key = Tuple[Hashable, ...]

_MISSING = object()


class QueryCache:
    def __init__(self) -> None:
        self._entries: Dict[Key, Any] = {}

    def __contains__(self, key: Key) -> bool:
        return tuple(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Key, default: Any = None) -> Any:
        return self._entries.get(tuple(key), default)

    def set(self, key: Key, value: Any) -> None:
        self._entries[tuple(key)] = value

    def fetch(self, key: Key, loader: Callable[[], Any]) -> Any:
        """Return the cached value for ``key`` or load and remember it.

        Exceptions from ``loader`` propagate and nothing is stored.
        """
        key = tuple(key)
        value = self._entries.get(key, _MISSING)
        if value is _MISSING:
            value = loader()
            self._entries[key] = value
        return value

    def invalidate(self, *prefix: Hashable) -> int:
        size = len(prefix)
        stale = [key for key in self._entries if key[:size] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("cache: invalidated %d entries under %r", len(stale), prefix)
        return len(stale)

    def discard(self, key: Key) -> None:
        self._entries.pop(tuple(key), None)

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["QueryCache"]
