"""Sorts snapshot outputs and plans the archive that bundles them."""

from __future__ import annotations

import posixpath
from typing import Dict, Iterator, List, Optional, Tuple

from .builder import SnapshotLayout
from .models import ArchiveFiles, SnapshotRun, WriteFile


class BuildVariables:
    """Named values exported to the downstream build, one per family and mode."""

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}

    def set(self, name: str, value: str) -> None:
        self._values[name] = value

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(sorted(self._values.items()))

    def render(self) -> str:
        """Render ``NAME := value`` lines, sorted by name."""
        return "".join(f"{name} := {value}\n" for name, value in self.items())


class Packager:
    """Turns a finished :class:`SnapshotRun` into a planned archive."""

    def __init__(
        self,
        layout: SnapshotLayout,
        device_name: str,
        variables: BuildVariables,
        variable_name: str,
    ) -> None:
        self.layout = layout
        self.device_name = device_name
        self.variables = variables
        self.variable_name = variable_name

    @property
    def archive_path(self) -> str:
        return posixpath.join(
            self.layout.snapshot_dir, f"{self.layout.family}-{self.device_name}.zip"
        )

    @property
    def list_path(self) -> str:
        return posixpath.join(
            self.layout.snapshot_dir, f"{self.layout.family}-{self.device_name}_list"
        )

    def pack(self, run: SnapshotRun) -> str:
        """Sort outputs, plan the list file and archive, and export the archive path."""
        ordered: List[str] = sorted(run.outputs)
        run.outputs[:] = ordered
        listing = "".join(f"{path}\n" for path in ordered)
        run.actions.append(WriteFile(dest=self.list_path, content=listing))
        run.actions.append(
            ArchiveFiles(
                archive=self.archive_path,
                root=self.layout.snapshot_dir,
                list_file=self.list_path,
            )
        )
        self.variables.set(self.variable_name, self.archive_path)
        return self.archive_path


__all__ = ["BuildVariables", "Packager"]
