"""Install-once tracking for content shared between snapshot modules."""

from __future__ import annotations

from typing import Callable, Dict, Optional, TypeVar

T = TypeVar("T")


class Deduplicator:
    """Remembers destination paths already written during one pass.

    The backing map belongs to the pass (see ``SnapshotRun.installed``) so the
    tree builder and the header/notice installers share one view.
    """

    def __init__(self, installed: Dict[str, bool] | None = None) -> None:
        self._installed: Dict[str, bool] = installed if installed is not None else {}

    def install_once(self, dest: str, payload: Callable[[], T]) -> Optional[T]:
        """Run ``payload`` the first time ``dest`` is requested; later calls are no-ops."""
        if self._installed.get(dest):
            return None
        self._installed[dest] = True
        return payload()

    def seen(self, dest: str) -> bool:
        return bool(self._installed.get(dest))

    def __len__(self) -> int:
        return len(self._installed)


__all__ = ["Deduplicator"]
