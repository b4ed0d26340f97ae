# SPDX-License-Identifier: AGPL-3.0-or-later
"""Reading error bodies returned by the backend."""

from typing import Any, Optional

UNKNOWN_ERROR = "Unknown error"


def body_message(body: Any) -> Optional[str]:
    """Pull a human message out of the error envelopes the backend emits.

    Handles ``{"message": ...}``, ``{"detail": "..."}``,
    ``{"detail": {"message": ...}}`` and ``{"error": "..."}``.
    """
    if isinstance(body, str):
        return body.strip() or None
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, str) and message:
        return message
    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, dict):
        nested = body_message(detail)
        if nested:
            return nested
    error = body.get("error")
    if isinstance(error, str) and error:
        return error
    return None


def body_code(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    detail = body.get("detail")
    if isinstance(detail, dict) and isinstance(detail.get("error"), str):
        return detail["error"]
    for key in ("code", "status"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def error_message(body: Any, fallback: Optional[str] = None) -> str:
    """Body message, then the transport's own text, then ``"Unknown error"``."""
    return body_message(body) or fallback or UNKNOWN_ERROR


__all__ = ["UNKNOWN_ERROR", "body_code", "body_message", "error_message"]
