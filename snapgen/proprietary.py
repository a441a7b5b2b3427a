"""Decides whether a source directory is OEM-owned or platform-owned.

Prefixes match whole path components: ``vendor`` covers ``vendor`` and
``vendor/acme`` but not ``vendorx`` or ``device_common``. Build systems that
match raw string prefixes treat those sibling trees as proprietary, so module
lists carried over from such a build may classify differently here.
"""

from __future__ import annotations

import posixpath
from typing import AbstractSet, Iterable

# Directories owned by the SoC vendor / OEM.
VENDOR_PROPRIETARY_DIRS = (
    "device",
    "kernel",
    "vendor",
    "hardware",
    "disregard",
)

RECOVERY_PROPRIETARY_DIRS = (
    "device",
    "hardware",
    "kernel",
    "vendor",
)

# Platform-owned trees living under otherwise proprietary prefixes.
PLATFORM_CARVE_OUTS = (
    "kernel/configs",
    "kernel/prebuilts",
    "kernel/tests",
    "hardware/interfaces",
    "hardware/libhardware",
    "hardware/libhardware_legacy",
    "hardware/ril",
)


def has_path_prefix(path: str, prefix: str) -> bool:
    """Return True when ``prefix`` names ``path`` or one of its ancestors."""
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


def is_proprietary_path(
    directory: str,
    prefixes: Iterable[str],
    carve_outs: Iterable[str] = PLATFORM_CARVE_OUTS,
) -> bool:
    """Return True if ``directory`` is proprietary under the given prefix lists.

    Carve-outs always win over proprietary prefixes.
    """
    directory = normalise(directory)
    if not any(has_path_prefix(directory, prefix) for prefix in prefixes):
        return False
    return not any(has_path_prefix(directory, carve_out) for carve_out in carve_outs)


def is_directory_excluded(
    directory: str,
    excluded: AbstractSet[str],
    included: AbstractSet[str],
) -> bool:
    """Walk from ``directory`` to the tree root; the nearest listed ancestor decides.

    A directory present in both maps counts as included. Trees with no listed
    ancestor are not excluded.
    """
    current = normalise(directory)
    while current not in ("", "."):
        if current in included:
            return False
        if current in excluded:
            return True
        current = posixpath.dirname(current)
    return False


def normalise(directory: str) -> str:
    cleaned = posixpath.normpath(directory.strip()) if directory.strip() else ""
    cleaned = cleaned.strip("/")
    return "" if cleaned == "." else cleaned


__all__ = [
    "PLATFORM_CARVE_OUTS",
    "RECOVERY_PROPRIETARY_DIRS",
    "VENDOR_PROPRIETARY_DIRS",
    "has_path_prefix",
    "is_directory_excluded",
    "is_proprietary_path",
    "normalise",
]
