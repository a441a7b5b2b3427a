"""Module eligibility classifier for platform snapshots.

Eligibility is an ordered pipeline of named rules. Each rule either lets the
unit continue (``None``) or settles the verdict (``True``/``False``). Later
rules assume earlier ones passed, so the order of :data:`SNAPSHOT_RULES` is
part of the public contract:

1. ``enabled``         disabled, hidden or superseded units
2. ``proprietary``     vendor-owned code (VNDK members survive where included)
3. ``excluded``        explicit ``exclude_from_<family>_snapshot``
4. ``device-target``   host builds and native-bridge variants
5. ``image-membership`` apex variants, snapshot prebuilts, other partitions
6. ``abi-stable``      kernel headers and LL-NDK stubs/headers
7. ``library``         sanitizer exceptions and per-kind library checks
8. ``binary-object``   executables and object files
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .images import ImagePolicy
from .logging import get_logger
from .models import (
    CFI,
    DEVICE,
    HWASAN,
    KERNEL_HEADERS,
    LLNDK_HEADERS,
    LLNDK_STUB,
    SCS,
    Binary,
    CompiledUnit,
    HeaderLibrary,
    ObjectFile,
    SharedLibrary,
    SnapshotError,
    StaticLibrary,
)

_LOGGER = get_logger("classifier")

_LIBRARY_TYPES = (StaticLibrary, SharedLibrary, HeaderLibrary)
_ABI_STABLE_STUBS = frozenset({KERNEL_HEADERS, LLNDK_STUB, LLNDK_HEADERS})
# These sanitizers export sanitized and unsanitized static/header variants;
# only the unsanitized one is captured.
_UNSANITIZED_ONLY = (SCS, HWASAN)

RuleCheck = Callable[[CompiledUnit, bool, ImagePolicy], Optional[bool]]


class SnapshotConfigError(SnapshotError):
    """Raised when a module's snapshot flags contradict each other."""


@dataclass(frozen=True)
class Rule:
    name: str
    check: RuleCheck


@dataclass(frozen=True)
class Decision:
    """Outcome of classifying one unit; ``rule`` is the rule that settled it."""

    eligible: bool
    rule: str


def _enabled(unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy) -> Optional[bool]:
    if not unit.enabled or unit.hide_from_make:
        return False
    # Set on whichever of a source/prebuilt pair lost the preference.
    if unit.skip_install:
        return False
    return None


def _proprietary(unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy) -> Optional[bool]:
    if in_proprietary_path and (not policy.include_vndk() or not unit.vndk):
        return False
    return None


def _excluded(unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy) -> Optional[bool]:
    return False if policy.exclude_from_snapshot(unit) else None


def _device_target(unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy) -> Optional[bool]:
    if unit.target.os_class != DEVICE or unit.target.native_bridge:
        return False
    return None


def _image_membership(unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy) -> Optional[bool]:
    if not unit.for_platform or unit.snapshot_prebuilt or not policy.in_image(unit):
        return False
    return None


def _abi_stable(unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy) -> Optional[bool]:
    return False if unit.abi_stub in _ABI_STABLE_STUBS else None


def _library(unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy) -> Optional[bool]:
    if not isinstance(unit, _LIBRARY_TYPES):
        return None
    shared = isinstance(unit, SharedLibrary)
    static = isinstance(unit, StaticLibrary)
    if not shared and any(unit.sanitized(name) for name in _UNSANITIZED_ONLY):
        return False
    # cfi static variants are both captured (see the builder's .cfi infix).
    if not static and not shared and unit.sanitized(CFI):
        return False
    if static:
        return unit.output_valid and _available(unit, policy)
    if shared:
        if not unit.output_valid:
            return False
        if policy.include_vndk() and unit.vndk:
            return unit.vndk_ext
    return True


def _binary_object(unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy) -> Optional[bool]:
    if isinstance(unit, (Binary, ObjectFile)):
        return unit.output_valid and _available(unit, policy)
    return None


def _available(unit: CompiledUnit, policy: ImagePolicy) -> bool:
    available = policy.available(unit)
    return True if available is None else available


SNAPSHOT_RULES: Tuple[Rule, ...] = (
    Rule("enabled", _enabled),
    Rule("proprietary", _proprietary),
    Rule("excluded", _excluded),
    Rule("device-target", _device_target),
    Rule("image-membership", _image_membership),
    Rule("abi-stable", _abi_stable),
    Rule("library", _library),
    Rule("binary-object", _binary_object),
)

UNKNOWN_SHAPE_RULE = "shape"


def explain(
    unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy
) -> Decision:
    """Run the rule pipeline and report which rule settled the verdict."""
    for rule in SNAPSHOT_RULES:
        verdict = rule.check(unit, in_proprietary_path, policy)
        if verdict is None:
            continue
        if not verdict:
            _LOGGER.debug("%s rejected by rule '%s'", unit.identity(), rule.name)
        return Decision(eligible=bool(verdict), rule=rule.name)
    _LOGGER.debug("%s has no snapshot shape", unit.identity())
    return Decision(eligible=False, rule=UNKNOWN_SHAPE_RULE)


def is_snapshot_eligible(
    unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy
) -> bool:
    """Return True if ``unit`` is captured in ``policy``'s snapshot."""
    return explain(unit, in_proprietary_path, policy).eligible


def check_snapshot_config(
    unit: CompiledUnit, in_proprietary_path: bool, policy: ImagePolicy
) -> None:
    """Reject contradictory snapshot flags before any output is planned."""
    if not policy.exclude_from_snapshot(unit):
        return
    family = policy.name
    if in_proprietary_path:
        raise SnapshotConfigError(
            f'module "{unit.identity()}" in {family} proprietary path '
            f'"{unit.module_dir}" may not use "exclude_from_{family}_snapshot: true"'
        )
    if policy.available(unit):
        raise SnapshotConfigError(
            f'module "{unit.identity()}" may not use both "{family}_available: true" '
            f'and "exclude_from_{family}_snapshot: true"'
        )


__all__ = [
    "Decision",
    "Rule",
    "SNAPSHOT_RULES",
    "SnapshotConfigError",
    "UNKNOWN_SHAPE_RULE",
    "check_snapshot_config",
    "explain",
    "is_snapshot_eligible",
]
