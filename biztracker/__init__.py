# SPDX-License-Identifier: AGPL-3.0-or-later
"""BizTracker client package exports."""

from importlib.metadata import version, PackageNotFoundError

from biztracker import safelog  # noqa: F401  installs the redacting logger class

__all__ = ["get_version"]


def get_version() -> str:
    """Return the package version if installed, otherwise ``"0.1.0"``."""
    try:
        return version("biztracker")
    except PackageNotFoundError:  # pragma: no cover - fallback for source checkouts
        return "0.1.0"
