"""Tests for snapgen.images."""

from __future__ import annotations

from pathlib import Path

import pytest

from snapgen.config import SnapshotConfig
from snapgen.images import RamdiskImage, RecoveryImage, VendorImage, image_names, policy_for
from snapgen.models import ImageFlags

from tests._fixtures.units import static_lib


def test_policy_for_returns_each_family(config: SnapshotConfig) -> None:
    assert isinstance(policy_for("vendor", config), VendorImage)
    assert isinstance(policy_for("Recovery", config), RecoveryImage)
    assert isinstance(policy_for("ramdisk", config), RamdiskImage)
    assert image_names() == ["vendor", "recovery", "ramdisk"]


def test_policy_for_rejects_unknown_family(config: SnapshotConfig) -> None:
    with pytest.raises(ValueError, match="odm"):
        policy_for("odm", config)


def test_vndk_capabilities(vendor: VendorImage, recovery: RecoveryImage, ramdisk: RamdiskImage) -> None:
    assert vendor.include_vndk() and vendor.supports_vndk_ext
    assert not recovery.include_vndk() and not recovery.supports_vndk_ext
    assert not ramdisk.include_vndk() and not ramdisk.supports_vndk_ext


def test_generation_gates_follow_versions(tmp_path: Path) -> None:
    config = SnapshotConfig(root=tmp_path, vndk_version="30", recovery_snapshot_version="current")

    assert not VendorImage(config).should_generate_snapshot()
    assert not RamdiskImage(config).should_generate_snapshot()
    assert RecoveryImage(config).should_generate_snapshot()


def test_ramdisk_paths_come_from_config(ramdisk: RamdiskImage) -> None:
    assert ramdisk.is_proprietary_path("vendor/acme/lib")
    assert not ramdisk.is_proprietary_path("vendor/acme/ramdisk/init")
    assert not ramdisk.is_proprietary_path("hardware/qcom")


def test_per_module_flags_are_read_for_own_family(vendor: VendorImage, recovery: RecoveryImage) -> None:
    unit = static_lib(
        images={
            "vendor": ImageFlags(installed=True, available=False),
            "recovery": ImageFlags(installed=False, exclude=True),
        }
    )

    assert vendor.in_image(unit)
    assert vendor.available(unit) is False
    assert not vendor.exclude_from_snapshot(unit)
    assert not recovery.in_image(unit)
    assert recovery.available(unit) is None
    assert recovery.exclude_from_snapshot(unit)


def test_build_variable_names(vendor: VendorImage, ramdisk: RamdiskImage) -> None:
    assert vendor.build_variable() == "SOONG_VENDOR_SNAPSHOT_ZIP"
    assert vendor.build_variable(fake=True) == "SOONG_VENDOR_FAKE_SNAPSHOT_ZIP"
    assert ramdisk.build_variable(fake=True) == "SOONG_RAMDISK_FAKE_SNAPSHOT_ZIP"


def test_directed_snapshot_exclusion(directed_vendor: VendorImage, vendor: VendorImage) -> None:
    assert not directed_vendor.exclude_from_directed_snapshot("libfoo")
    assert directed_vendor.exclude_from_directed_snapshot("libbar")
    assert not vendor.exclude_from_directed_snapshot("libbar")
