# SPDX-License-Identifier: AGPL-3.0-or-later
"""Data contracts shared by the client and the aggregates."""
