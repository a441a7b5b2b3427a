"""Tests for snapgen.dedup."""

from __future__ import annotations

from snapgen.dedup import Deduplicator


def test_second_request_for_same_destination_is_a_noop() -> None:
    calls: list[str] = []
    dedup = Deduplicator()

    def payload() -> str:
        calls.append("copied")
        return "configs/init.rc"

    assert dedup.install_once("configs/init.rc", payload) == "configs/init.rc"
    assert dedup.install_once("configs/init.rc", payload) is None
    assert calls == ["copied"]
    assert dedup.seen("configs/init.rc")
    assert len(dedup) == 1


def test_shares_backing_map_with_the_run() -> None:
    installed: dict[str, bool] = {"NOTICE_FILES/libfoo.txt": True}
    dedup = Deduplicator(installed)

    assert dedup.install_once("NOTICE_FILES/libfoo.txt", lambda: "again") is None
    assert dedup.install_once("NOTICE_FILES/libbar.txt", lambda: "new") == "new"
    assert installed == {"NOTICE_FILES/libfoo.txt": True, "NOTICE_FILES/libbar.txt": True}
