# SPDX-License-Identifier: AGPL-3.0-or-later
"""Normalization of the backend's response envelopes.

Endpoint versions disagree: some answer ``{"status", "results", "data": [...]}``,
some answer a bare list, and single-record endpoints answer either
``{"data": {...}}`` or the bare record. Every consumer goes through
``unwrap_list``/``unwrap_one`` so nothing else has to care.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

ENVELOPE_KEYS = {"status", "results", "data", "success", "message"}


class EnvelopeError(ValueError):
    """The response body does not have any shape the client understands."""


def _is_envelope(payload: Mapping[str, Any]) -> bool:
    if "data" not in payload:
        return False
    return "status" in payload or "results" in payload or set(payload.keys()) <= ENVELOPE_KEYS


def unwrap_list(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, Mapping) and _is_envelope(payload):
        payload = payload["data"]
    if payload is None:
        return []
    if isinstance(payload, Mapping):
        return [dict(payload)]
    if isinstance(payload, list):
        if not all(isinstance(entry, Mapping) for entry in payload):
            raise EnvelopeError("list response contains non-object entries")
        return [dict(entry) for entry in payload]
    raise EnvelopeError(f"unexpected response body of type {type(payload).__name__}")


def unwrap_one(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, Mapping) and _is_envelope(payload):
        payload = payload["data"]
    if isinstance(payload, list) and len(payload) == 1:
        payload = payload[0]
    if isinstance(payload, Mapping) and payload:
        return dict(payload)
    raise EnvelopeError("expected a single record in the response body")


__all__ = ["EnvelopeError", "unwrap_list", "unwrap_one"]
