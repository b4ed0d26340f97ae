# SPDX-License-Identifier: AGPL-3.0-or-later
"""Relationship store and legacy-conversion job support."""

from biztracker.relationships.jobs import (
    ConversionJobPoller,
    ConversionJobStatus,
    ConversionJobTicket,
    ConversionResult,
    JobPollTimeout,
)
from biztracker.relationships.store import DuplicateDerivedSource, RelationshipStore

__all__ = [
    "ConversionJobPoller",
    "ConversionJobStatus",
    "ConversionJobTicket",
    "ConversionResult",
    "DuplicateDerivedSource",
    "JobPollTimeout",
    "RelationshipStore",
]
