# SPDX-License-Identifier: AGPL-3.0-or-later
"""Domain primitives for BizTracker: units, measurements, relationships, aggregates."""

__version__ = "0.1.0"
