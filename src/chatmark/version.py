"""Version lookup for the installed distribution."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version


DISTRIBUTION = "chatmark"
UNKNOWN_VERSION = "0.0.0"


def get_version(distribution: str = DISTRIBUTION) -> str:
    """Return the installed version, or ``0.0.0`` when running from a plain checkout."""
    try:
        return _pkg_version(distribution)
    except PackageNotFoundError:
        return UNKNOWN_VERSION


__all__ = ["DISTRIBUTION", "UNKNOWN_VERSION", "get_version"]
