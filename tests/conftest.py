from __future__ import annotations

from pathlib import Path

import pytest

from snapgen.config import DirectedSnapshot, SnapshotConfig
from snapgen.images import RamdiskImage, RecoveryImage, VendorImage


@pytest.fixture
def config(tmp_path: Path) -> SnapshotConfig:
    """Build settings with every family's generation gate open."""
    return SnapshotConfig(
        root=tmp_path,
        device_arch="arm64",
        device_name="generic_arm64",
        vndk_version="current",
        recovery_snapshot_version="current",
        ramdisk_dirs_excluded=frozenset({"device", "vendor"}),
        ramdisk_dirs_included=frozenset({"vendor/acme/ramdisk"}),
    )


@pytest.fixture
def vendor(config: SnapshotConfig) -> VendorImage:
    return VendorImage(config)


@pytest.fixture
def recovery(config: SnapshotConfig) -> RecoveryImage:
    return RecoveryImage(config)


@pytest.fixture
def ramdisk(config: SnapshotConfig) -> RamdiskImage:
    return RamdiskImage(config)


@pytest.fixture
def directed_vendor(tmp_path: Path) -> VendorImage:
    """Vendor policy that only captures libfoo with real bytes."""
    return VendorImage(
        SnapshotConfig(
            root=tmp_path,
            device_name="generic_arm64",
            vndk_version="current",
            directed={"vendor": DirectedSnapshot(enabled=True, modules=frozenset({"libfoo"}))},
        )
    )
