"""Image policies describing the partition families a snapshot can target."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, ClassVar, Dict, List, Optional

from .config import CURRENT, DirectedSnapshot, SnapshotConfig
from .models import CompiledUnit
from .proprietary import (
    RECOVERY_PROPRIETARY_DIRS,
    VENDOR_PROPRIETARY_DIRS,
    is_directory_excluded,
    is_proprietary_path,
)


class ImagePolicy(ABC):
    """Capability set the classifier and tree builder are written against.

    One instance exists per family for the lifetime of the process; it only
    reads the immutable :class:`SnapshotConfig` it was built from.
    """

    name: ClassVar[str]
    supports_vndk_ext: ClassVar[bool] = False

    def __init__(self, config: SnapshotConfig) -> None:
        self._config = config
        self._directed = config.directed_for(self.name)

    @property
    def config(self) -> SnapshotConfig:
        return self._config

    @property
    def directed(self) -> DirectedSnapshot:
        return self._directed

    @abstractmethod
    def include_vndk(self) -> bool:
        """Return True when proprietary VNDK members are still captured."""

    @abstractmethod
    def should_generate_snapshot(self) -> bool:
        """Return True when the build asks for a full snapshot of this family."""

    @abstractmethod
    def is_proprietary_path(self, directory: str) -> bool:
        """Return True when ``directory`` is owned by this family's vendor."""

    @property
    @abstractmethod
    def snapshot_version(self) -> str:
        """Version string captured units are registered under."""

    def in_image(self, unit: CompiledUnit) -> bool:
        return unit.image(self.name).installed

    def available(self, unit: CompiledUnit) -> Optional[bool]:
        """Return the unit's ``<family>_available`` flag, or None when unset."""
        return unit.image(self.name).available

    def exclude_from_snapshot(self, unit: CompiledUnit) -> bool:
        return unit.image(self.name).exclude

    def exclude_from_directed_snapshot(self, name: str) -> bool:
        return self._directed.excludes(name)

    def build_variable(self, *, fake: bool = False) -> str:
        """Name of the build variable that points at this family's archive."""
        infix = "_FAKE" if fake else ""
        return f"SOONG_{self.name.upper()}{infix}_SNAPSHOT_ZIP"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(device_arch={self._config.device_arch!r})"


class VendorImage(ImagePolicy):
    name = "vendor"
    supports_vndk_ext = True

    def include_vndk(self) -> bool:
        return True

    def should_generate_snapshot(self) -> bool:
        # BOARD_VNDK_VERSION must be "current" to freeze the vendor surface.
        return self._config.vndk_version == CURRENT

    def is_proprietary_path(self, directory: str) -> bool:
        return is_proprietary_path(directory, VENDOR_PROPRIETARY_DIRS)

    @property
    def snapshot_version(self) -> str:
        return self._config.vndk_version


class RecoveryImage(ImagePolicy):
    name = "recovery"

    def include_vndk(self) -> bool:
        return False

    def should_generate_snapshot(self) -> bool:
        return self._config.recovery_snapshot_version == CURRENT

    def is_proprietary_path(self, directory: str) -> bool:
        return is_proprietary_path(directory, RECOVERY_PROPRIETARY_DIRS)

    @property
    def snapshot_version(self) -> str:
        return self._config.recovery_snapshot_version


class RamdiskImage(ImagePolicy):
    name = "ramdisk"

    def include_vndk(self) -> bool:
        return False

    def should_generate_snapshot(self) -> bool:
        return self._config.vndk_version == CURRENT

    def is_proprietary_path(self, directory: str) -> bool:
        return is_directory_excluded(
            directory,
            self._config.ramdisk_dirs_excluded,
            self._config.ramdisk_dirs_included,
        )

    @property
    def snapshot_version(self) -> str:
        return self._config.vndk_version


_BUILTIN_POLICIES: Dict[str, Callable[[SnapshotConfig], ImagePolicy]] = {
    VendorImage.name: VendorImage,
    RecoveryImage.name: RecoveryImage,
    RamdiskImage.name: RamdiskImage,
}


def image_names() -> List[str]:
    return list(_BUILTIN_POLICIES)


def policy_for(name: str, config: SnapshotConfig) -> ImagePolicy:
    """Instantiate the policy registered for ``name``."""
    try:
        factory = _BUILTIN_POLICIES[name.lower()]
    except KeyError:
        known = ", ".join(sorted(_BUILTIN_POLICIES))
        raise ValueError(f"Unknown image family '{name}' (expected one of: {known})") from None
    return factory(config)


__all__ = [
    "ImagePolicy",
    "RamdiskImage",
    "RecoveryImage",
    "VendorImage",
    "image_names",
    "policy_for",
]
