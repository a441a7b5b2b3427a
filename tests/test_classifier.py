"""Tests for snapgen.classifier."""

from __future__ import annotations

import pytest

from snapgen.classifier import (
    SNAPSHOT_RULES,
    SnapshotConfigError,
    check_snapshot_config,
    explain,
    is_snapshot_eligible,
)
from snapgen.images import RecoveryImage, VendorImage
from snapgen.models import ImageFlags, Target

from tests._fixtures.units import (
    binary,
    header_lib,
    object_file,
    shapeless,
    shared_lib,
    static_lib,
)


def test_rule_order_is_stable() -> None:
    assert [rule.name for rule in SNAPSHOT_RULES] == [
        "enabled",
        "proprietary",
        "excluded",
        "device-target",
        "image-membership",
        "abi-stable",
        "library",
        "binary-object",
    ]


def test_plain_static_library_is_eligible(vendor: VendorImage) -> None:
    unit = static_lib()

    decision = explain(unit, False, vendor)

    assert decision.eligible
    assert decision.rule == "library"


def test_classification_is_deterministic(vendor: VendorImage) -> None:
    unit = shared_lib(vndk=True)

    assert explain(unit, False, vendor) == explain(unit, False, vendor)


@pytest.mark.parametrize(
    "overrides",
    [{"enabled": False}, {"hide_from_make": True}, {"skip_install": True}],
)
def test_disabled_hidden_or_superseded_units_are_rejected(vendor: VendorImage, overrides) -> None:
    assert explain(static_lib(**overrides), False, vendor).rule == "enabled"


def test_proprietary_non_vndk_unit_is_rejected(vendor: VendorImage) -> None:
    unit = static_lib(module_dir="vendor/acme/libfoo")
    in_proprietary_path = vendor.is_proprietary_path(unit.module_dir)

    decision = explain(unit, in_proprietary_path, vendor)

    assert in_proprietary_path
    assert not decision.eligible
    assert decision.rule == "proprietary"


def test_proprietary_vndk_static_is_kept_for_vendor_only(
    vendor: VendorImage, recovery: RecoveryImage
) -> None:
    unit = static_lib(module_dir="hardware/qcom/libvndkfoo", vndk=True)

    assert is_snapshot_eligible(unit, True, vendor)
    assert explain(unit, True, recovery).rule == "proprietary"


def test_explicit_exclusion_is_rejected(vendor: VendorImage) -> None:
    unit = static_lib(images={"vendor": ImageFlags(installed=True, exclude=True)})

    assert explain(unit, False, vendor).rule == "excluded"


@pytest.mark.parametrize(
    "target",
    [
        Target(arch_type="x86_64", os_class="host"),
        Target(arch_type="arm64", native_bridge=True),
    ],
)
def test_host_and_native_bridge_targets_are_rejected(vendor: VendorImage, target: Target) -> None:
    assert explain(static_lib(target=target), False, vendor).rule == "device-target"


@pytest.mark.parametrize(
    "overrides",
    [
        {"for_platform": False},
        {"snapshot_prebuilt": True},
        {"images": {"vendor": ImageFlags(installed=False)}},
        {"images": {}},
    ],
)
def test_units_outside_the_image_are_rejected(vendor: VendorImage, overrides) -> None:
    assert explain(static_lib(**overrides), False, vendor).rule == "image-membership"


@pytest.mark.parametrize("stub", ["kernel_headers", "llndk_stub", "llndk_headers"])
def test_abi_stable_stubs_are_rejected(vendor: VendorImage, stub: str) -> None:
    assert explain(header_lib(abi_stub=stub), False, vendor).rule == "abi-stable"


@pytest.mark.parametrize("sanitizer", ["scs", "hwasan"])
def test_scs_and_hwasan_static_and_header_variants_are_rejected(
    vendor: VendorImage, sanitizer: str
) -> None:
    assert not is_snapshot_eligible(static_lib(sanitizers=frozenset({sanitizer})), False, vendor)
    assert not is_snapshot_eligible(header_lib(sanitizers=frozenset({sanitizer})), False, vendor)
    assert is_snapshot_eligible(shared_lib(sanitizers=frozenset({sanitizer})), False, vendor)


def test_cfi_header_variant_is_rejected_but_static_is_kept(vendor: VendorImage) -> None:
    cfi = frozenset({"cfi"})

    assert not is_snapshot_eligible(header_lib(sanitizers=cfi), False, vendor)
    assert is_snapshot_eligible(static_lib(sanitizers=cfi), False, vendor)
    assert is_snapshot_eligible(shared_lib(sanitizers=cfi), False, vendor)


def test_header_library_needs_no_output(vendor: VendorImage) -> None:
    assert is_snapshot_eligible(header_lib(), False, vendor)


def test_static_library_respects_availability(vendor: VendorImage) -> None:
    unavailable = static_lib(images={"vendor": ImageFlags(installed=True, available=False)})
    available = static_lib(images={"vendor": ImageFlags(installed=True, available=True)})

    assert not is_snapshot_eligible(unavailable, False, vendor)
    assert is_snapshot_eligible(available, False, vendor)


def test_missing_output_is_silently_ineligible(vendor: VendorImage) -> None:
    assert not is_snapshot_eligible(static_lib(output_file=None), False, vendor)
    assert not is_snapshot_eligible(shared_lib(output_file=""), False, vendor)
    assert not is_snapshot_eligible(binary(output_file=None), False, vendor)


def test_vndk_shared_library_requires_extension_under_vendor(vendor: VendorImage) -> None:
    assert not is_snapshot_eligible(shared_lib(vndk=True), False, vendor)
    assert is_snapshot_eligible(shared_lib(vndk=True, vndk_ext=True), False, vendor)
    assert is_snapshot_eligible(shared_lib(vndk=False), False, vendor)


def test_vndk_shared_library_is_kept_without_vndk_policy(recovery: RecoveryImage) -> None:
    assert is_snapshot_eligible(shared_lib(vndk=True), False, recovery)


def test_binaries_and_objects(vendor: VendorImage) -> None:
    assert explain(binary(), False, vendor).rule == "binary-object"
    assert is_snapshot_eligible(binary(), False, vendor)
    assert is_snapshot_eligible(object_file(), False, vendor)
    unavailable = object_file(images={"vendor": ImageFlags(installed=True, available=False)})
    assert not is_snapshot_eligible(unavailable, False, vendor)


def test_shapeless_unit_is_ineligible(vendor: VendorImage) -> None:
    decision = explain(shapeless(), False, vendor)

    assert not decision.eligible
    assert decision.rule == "shape"


def test_conflicting_flags_abort(vendor: VendorImage) -> None:
    unit = static_lib(images={"vendor": ImageFlags(installed=True, available=True, exclude=True)})

    with pytest.raises(SnapshotConfigError, match="vendor_available: true"):
        check_snapshot_config(unit, False, vendor)


def test_exclusion_in_proprietary_path_aborts(vendor: VendorImage) -> None:
    unit = static_lib(
        module_dir="vendor/acme/libfoo",
        images={"vendor": ImageFlags(installed=True, exclude=True)},
    )

    with pytest.raises(SnapshotConfigError, match="exclude_from_vendor_snapshot"):
        check_snapshot_config(unit, True, vendor)


def test_consistent_flags_pass_the_check(vendor: VendorImage) -> None:
    check_snapshot_config(static_lib(), False, vendor)
    excluded = static_lib(images={"vendor": ImageFlags(installed=True, exclude=True)})
    check_snapshot_config(excluded, False, vendor)
