"""Runs planned snapshot actions against a source tree and an output tree."""

from __future__ import annotations

import shutil
import zipfile
from pathlib import Path
from typing import Iterable

from .logging import get_logger
from .models import ArchiveFiles, BuildAction, CopyFile, WriteFile

# Fixed entry metadata so identical inputs yield byte-identical archives.
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
_ZIP_MODE = 0o644 << 16

_LOGGER = get_logger("executor")


def execute(actions: Iterable[BuildAction], source_root: Path, out_dir: Path) -> None:
    """Execute ``actions`` in order; paths are relative to the given roots."""
    for action in actions:
        if isinstance(action, CopyFile):
            _copy(source_root / action.source, out_dir / action.dest)
        elif isinstance(action, WriteFile):
            dest = out_dir / action.dest
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_text(action.content, encoding="utf-8")
        elif isinstance(action, ArchiveFiles):
            _archive(action, out_dir)
        else:  # pragma: no cover - BuildAction is closed
            raise TypeError(f"Unsupported build action: {action!r}")


def _copy(source: Path, dest: Path) -> None:
    if not source.is_file():
        raise FileNotFoundError(f"Snapshot input not found: {source}")
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, dest)


def _archive(action: ArchiveFiles, out_dir: Path) -> None:
    root = out_dir / action.root
    list_file = out_dir / action.list_file
    listing = list_file.read_text(encoding="utf-8").splitlines()
    entries = [entry for entry in listing if entry]
    archive = out_dir / action.archive
    archive.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as bundle:
        for entry in entries:
            path = out_dir / entry
            info = zipfile.ZipInfo(path.relative_to(root).as_posix(), date_time=_ZIP_EPOCH)
            info.external_attr = _ZIP_MODE
            info.compress_type = zipfile.ZIP_DEFLATED
            bundle.writestr(info, path.read_bytes())
    # The list is a temporary of the archive step.
    list_file.unlink()
    _LOGGER.info("Wrote %s (%d entries)", archive, len(entries))


__all__ = ["execute"]
