"""Lays eligible units out into the snapshot tree.

Zipped snapshot layout::

    <family>-snapshot/<device-arch>/
        arch-<ARCH>[-<VARIANT>]/
            shared/   (.so shared libraries)
            static/   (.a static libraries)
            header/   (header only libraries)
            binary/   (executable binaries)
            object/   (.o object files)
        NOTICE_FILES/ (notice files, e.g. libbase.txt)
        configs/      (init.rc files, vintf fragments)
        include/      (headers, same structure as the source tree)

Fake snapshots nest the whole tree under ``fake/``. The builder only plans
actions on the :class:`SnapshotRun`; nothing is read or written here.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Optional

from .dedup import Deduplicator
from .images import ImagePolicy
from .manifest import ArtifactMetadataRecord
from .models import (
    CFI,
    MINIMAL_RUNTIME,
    UBSAN,
    Binary,
    CompiledUnit,
    CopyFile,
    HeaderLibrary,
    LibraryUnit,
    ObjectFile,
    SharedLibrary,
    SnapshotError,
    SnapshotRun,
    StaticLibrary,
    WriteFile,
)

HEADER_EXTS = (".h", ".hh", ".hpp", ".hxx", ".h++", ".inl", ".inc", ".ipp", ".h.generic")


class UnknownUnitError(SnapshotError):
    """Raised when an eligible unit has no snapshot shape."""


class _PlannedConfig(NamedTuple):
    index: int
    source: str
    placeholder: bool


@dataclass(frozen=True)
class SnapshotLayout:
    """Directory names of one family's snapshot tree."""

    family: str
    device_arch: str
    fake: bool = False

    @property
    def snapshot_dir(self) -> str:
        name = f"{self.family}-snapshot"
        return posixpath.join("fake", name) if self.fake else name

    @property
    def arch_dir(self) -> str:
        return posixpath.join(self.snapshot_dir, self.device_arch)

    @property
    def include_dir(self) -> str:
        return posixpath.join(self.arch_dir, "include")

    @property
    def configs_dir(self) -> str:
        return posixpath.join(self.arch_dir, "configs")

    @property
    def notice_dir(self) -> str:
        return posixpath.join(self.arch_dir, "NOTICE_FILES")

    def kind_dir(self, unit: CompiledUnit) -> str:
        return posixpath.join(self.arch_dir, unit.target.arch_dir, unit.kind)


def is_header(path: str) -> bool:
    return path.endswith(HEADER_EXTS)


def cfi_stem(stem: str) -> str:
    """Insert ``.cfi`` before the extension: ``libbase.a`` -> ``libbase.cfi.a``."""
    root, ext = posixpath.splitext(stem)
    return f"{root}.cfi{ext}"


class SnapshotTreeBuilder:
    """Plans copies and manifest writes for eligible units of one family."""

    def __init__(
        self,
        policy: ImagePolicy,
        run: SnapshotRun,
        *,
        fake: bool = False,
    ) -> None:
        self.policy = policy
        self.run = run
        self.fake = fake
        self.layout = SnapshotLayout(policy.name, policy.config.device_arch, fake)
        self._dedup = Deduplicator(run.installed)
        self._configs: Dict[str, _PlannedConfig] = {}

    # ------------------------------------------------------------------
    # Planned file operations

    def copy_file(self, source: str, dest: str, *, placeholder: bool = False) -> str:
        """Plan a copy, or an empty placeholder write in fake/placeholder mode."""
        if self.fake or placeholder:
            return self.write_file("", dest)
        self.run.actions.append(CopyFile(source=source, dest=dest))
        return dest

    def write_file(self, content: str, dest: str) -> str:
        self.run.actions.append(WriteFile(dest=dest, content=content))
        return dest

    # ------------------------------------------------------------------
    # Installation

    def install(self, unit: CompiledUnit, *, placeholder: bool = False) -> List[str]:
        """Plan the artifact, its manifest and its config files; return output paths."""
        if not isinstance(unit, (StaticLibrary, SharedLibrary, HeaderLibrary, Binary, ObjectFile)):
            raise UnknownUnitError(
                f'unknown module "{unit.identity()}" in {self.policy.name} snapshot'
            )

        outputs: List[str] = []
        record = ArtifactMetadataRecord(
            module_name=unit.name,
            relative_install_path=self._relative_install_path(unit),
            runtime_libs=list(unit.runtime_libs),
            required=list(unit.required),
            init_rc=[posixpath.join("configs", posixpath.basename(p)) for p in unit.init_rc],
            vintf_fragments=[
                posixpath.join("configs", posixpath.basename(p)) for p in unit.vintf_fragments
            ],
        )

        for path in [*unit.init_rc, *unit.vintf_fragments]:
            planned = self.install_config(path, placeholder=placeholder)
            if planned is not None:
                outputs.append(planned)

        kind_dir = self.layout.kind_dir(unit)
        if isinstance(unit, LibraryUnit):
            manifest_out = self._install_library(unit, record, kind_dir, outputs, placeholder)
        elif isinstance(unit, Binary):
            record.symlinks = list(unit.symlinks)
            record.shared_libs = list(unit.shared_libs)
            binary_out = posixpath.join(kind_dir, posixpath.basename(unit.output_file or ""))
            outputs.append(self.copy_file(unit.output_file or "", binary_out, placeholder=placeholder))
            manifest_out = binary_out + ".json"
        else:
            # Objects are not installed on device, so names may collide; use the module name.
            ext = posixpath.splitext(posixpath.basename(unit.output_file or ""))[1]
            object_out = posixpath.join(kind_dir, unit.name + ext)
            outputs.append(self.copy_file(unit.output_file or "", object_out, placeholder=placeholder))
            manifest_out = object_out + ".json"

        outputs.append(self.write_file(record.to_json(), manifest_out))
        return outputs

    def _install_library(
        self,
        unit: LibraryUnit,
        record: ArtifactMetadataRecord,
        kind_dir: str,
        outputs: List[str],
        placeholder: bool,
    ) -> str:
        record.exported_flags = list(unit.exported_flags)
        record.exported_dirs = [posixpath.join("include", d) for d in unit.exported_dirs]
        record.exported_system_dirs = [
            posixpath.join("include", d) for d in unit.exported_system_dirs
        ]
        # Shared library dependencies mean nothing for static or header libraries.
        if isinstance(unit, SharedLibrary):
            record.shared_libs = list(unit.shared_libs)
        if isinstance(unit, StaticLibrary):
            record.sanitize_minimal_dep = unit.minimal_runtime_dep or unit.sanitized(MINIMAL_RUNTIME)
            record.sanitize_ubsan_dep = unit.ubsan_runtime_dep or unit.sanitized(UBSAN)

        if isinstance(unit, HeaderLibrary):
            return posixpath.join(kind_dir, unit.name + ".json")

        stem = posixpath.basename(unit.output_file or "")
        if isinstance(unit, StaticLibrary) and unit.sanitized(CFI):
            # cfi and non-cfi static variants may both be captured.
            stem = cfi_stem(stem)
            record.sanitize = CFI
            record.module_name += ".cfi"
        library_out = posixpath.join(kind_dir, stem)
        outputs.append(self.copy_file(unit.output_file or "", library_out, placeholder=placeholder))
        return library_out + ".json"

    def install_config(self, source: str, *, placeholder: bool = False) -> Optional[str]:
        """Plan ``configs/<basename>`` once; return the path on first request.

        Several modules may ship the same config file. Whatever order they
        arrive in, a real copy replaces a placeholder, and among real copies
        the smallest source path is kept.
        """
        dest = posixpath.join(self.layout.configs_dir, posixpath.basename(source))
        placeholder = placeholder or self.fake
        action: CopyFile | WriteFile = (
            WriteFile(dest=dest) if placeholder else CopyFile(source=source, dest=dest)
        )

        current = self._configs.get(dest)
        if current is None:
            planned = self._dedup.install_once(dest, lambda: self._plan(action))
            if planned is not None:
                self._configs[dest] = _PlannedConfig(len(self.run.actions) - 1, source, placeholder)
            return planned

        if (placeholder, source) < (current.placeholder, current.source):
            self.run.actions[current.index] = action
            self._configs[dest] = _PlannedConfig(current.index, source, placeholder)
        return None

    def _plan(self, action: CopyFile | WriteFile) -> str:
        self.run.actions.append(action)
        return action.dest

    def _relative_install_path(self, unit: CompiledUnit) -> str:
        if self.policy.supports_vndk_ext and unit.vndk_ext:
            # VNDK extensions live in /vendor/lib(64)/vndk(-sp).
            return "vndk-sp" if unit.vndk_sp else "vndk"
        return unit.relative_install_path

    def install_notice(self, unit: CompiledUnit, *, placeholder: bool = False) -> Optional[str]:
        """Plan ``NOTICE_FILES/<module>.txt`` once per module name."""
        if not unit.notice_file:
            return None
        dest = posixpath.join(self.layout.notice_dir, unit.name + ".txt")
        notice = unit.notice_file
        return self._dedup.install_once(
            dest, lambda: self.copy_file(notice, dest, placeholder=placeholder)
        )

    def install_headers(self, headers: Iterable[str]) -> List[str]:
        """Plan ``include/<path>`` copies for unique header paths, in first-seen order."""
        outputs: List[str] = []
        for header in headers:
            if not is_header(header):
                continue
            dest = posixpath.join(self.layout.include_dir, header)
            planned = self._dedup.install_once(dest, lambda header=header, dest=dest: self.copy_file(header, dest))
            if planned is not None:
                outputs.append(planned)
        return outputs


__all__ = [
    "HEADER_EXTS",
    "SnapshotLayout",
    "SnapshotTreeBuilder",
    "UnknownUnitError",
    "cfi_stem",
    "is_header",
]
