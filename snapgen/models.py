"""Core data models shared across snapgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, FrozenSet, List, Optional, Tuple

# Sanitizer names as they appear in module-info documents.
CFI = "cfi"
SCS = "scs"
HWASAN = "hwasan"
UBSAN = "ubsan"
MINIMAL_RUNTIME = "asan-minimal-runtime"

# ABI-stable stub providers that never need freezing.
KERNEL_HEADERS = "kernel_headers"
LLNDK_STUB = "llndk_stub"
LLNDK_HEADERS = "llndk_headers"

DEVICE = "device"


class SnapshotError(RuntimeError):
    """Base class for fatal snapshot generation errors."""


@dataclass(frozen=True)
class Target:
    """Architecture and OS class a unit was compiled for."""

    arch_type: str
    arch_variant: str = ""
    os_class: str = DEVICE
    native_bridge: bool = False

    @property
    def arch_dir(self) -> str:
        name = f"arch-{self.arch_type}"
        if self.arch_variant:
            name += f"-{self.arch_variant}"
        return name


@dataclass(frozen=True)
class ImageFlags:
    """Per-family image membership flags of one unit."""

    installed: bool = False
    available: Optional[bool] = None
    exclude: bool = False


@dataclass
class CompiledUnit:
    """A compiled build artifact as reported by the build-graph host.

    Concrete shapes are the subclasses below; a bare ``CompiledUnit`` has no
    snapshot shape and is rejected by the classifier and the tree builder.
    """

    kind: ClassVar[str] = "unknown"

    name: str
    target: Target
    module_dir: str = ""
    output_file: Optional[str] = None
    sanitizers: FrozenSet[str] = frozenset()
    enabled: bool = True
    hide_from_make: bool = False
    skip_install: bool = False
    for_platform: bool = True
    snapshot_prebuilt: bool = False
    prebuilt: bool = False
    prefer: bool = False
    vndk: bool = False
    vndk_ext: bool = False
    vndk_sp: bool = False
    abi_stub: Optional[str] = None
    relative_install_path: str = ""
    shared_libs: List[str] = field(default_factory=list)
    runtime_libs: List[str] = field(default_factory=list)
    required: List[str] = field(default_factory=list)
    init_rc: List[str] = field(default_factory=list)
    vintf_fragments: List[str] = field(default_factory=list)
    notice_file: Optional[str] = None
    images: Dict[str, ImageFlags] = field(default_factory=dict)

    @property
    def output_valid(self) -> bool:
        return bool(self.output_file)

    def sanitized(self, sanitizer: str) -> bool:
        return sanitizer in self.sanitizers

    def image(self, family: str) -> ImageFlags:
        return self.images.get(family, ImageFlags())

    def identity(self) -> str:
        """Return a human-readable identity used in error messages."""
        target = self.target
        variant = f"_{target.arch_variant}" if target.arch_variant else ""
        return f"{self.name}@{target.os_class}_{target.arch_type}{variant}"


@dataclass
class LibraryUnit(CompiledUnit):
    """Fields shared by every library shape."""

    exported_dirs: List[str] = field(default_factory=list)
    exported_system_dirs: List[str] = field(default_factory=list)
    exported_flags: List[str] = field(default_factory=list)
    snapshot_headers: List[str] = field(default_factory=list)

    @property
    def is_static(self) -> bool:
        return self.kind == "static"

    @property
    def is_shared(self) -> bool:
        return self.kind == "shared"


@dataclass
class StaticLibrary(LibraryUnit):
    kind: ClassVar[str] = "static"

    minimal_runtime_dep: bool = False
    ubsan_runtime_dep: bool = False


@dataclass
class SharedLibrary(LibraryUnit):
    kind: ClassVar[str] = "shared"


@dataclass
class HeaderLibrary(LibraryUnit):
    kind: ClassVar[str] = "header"


@dataclass
class Binary(CompiledUnit):
    kind: ClassVar[str] = "binary"

    symlinks: List[str] = field(default_factory=list)


@dataclass
class ObjectFile(CompiledUnit):
    kind: ClassVar[str] = "object"


UNIT_TYPES: Dict[str, type] = {
    cls.kind: cls
    for cls in (StaticLibrary, SharedLibrary, HeaderLibrary, Binary, ObjectFile)
}


@dataclass
class CopyFile:
    """Planned copy of a source-tree file into the snapshot tree."""

    source: str
    dest: str


@dataclass
class WriteFile:
    """Planned write of literal content (manifests, placeholders, lists)."""

    dest: str
    content: str = ""


@dataclass
class ArchiveFiles:
    """Planned archive of every file named in ``list_file`` below ``root``."""

    archive: str
    root: str
    list_file: str


BuildAction = CopyFile | WriteFile | ArchiveFiles


class SnapshotMap:
    """Maps (module name, architecture) to the snapshot a module was captured as."""

    def __init__(self) -> None:
        self._snapshots: Dict[str, str] = {}

    @staticmethod
    def key(name: str, arch: str) -> str:
        return f"{name}:{arch}"

    def add(self, name: str, arch: str, snapshot: str) -> None:
        """Record e.g. ``add("libbase", "x86", "libbase.vendor.current.x86")``."""
        self._snapshots[self.key(name, arch)] = snapshot

    def get(self, name: str, arch: str) -> Tuple[Optional[str], bool]:
        snapshot = self._snapshots.get(self.key(name, arch))
        return snapshot, snapshot is not None

    def __len__(self) -> int:
        return len(self._snapshots)


@dataclass
class SnapshotRun:
    """Aggregate state of one packaging pass for one image family."""

    outputs: List[str] = field(default_factory=list)
    installed: Dict[str, bool] = field(default_factory=dict)
    snapshot_map: SnapshotMap = field(default_factory=SnapshotMap)
    actions: List[BuildAction] = field(default_factory=list)


__all__ = [
    "ArchiveFiles",
    "Binary",
    "BuildAction",
    "CompiledUnit",
    "CopyFile",
    "HeaderLibrary",
    "ImageFlags",
    "LibraryUnit",
    "ObjectFile",
    "SharedLibrary",
    "SnapshotError",
    "SnapshotMap",
    "SnapshotRun",
    "StaticLibrary",
    "Target",
    "UNIT_TYPES",
    "WriteFile",
]
