"""CLI behaviour tests."""

from __future__ import annotations

import json
import logging
import zipfile
from pathlib import Path

import pytest

from snapgen.cli import _build_parser, main


@pytest.fixture(autouse=True)
def _clean_build_env(monkeypatch) -> None:
    for variable in ("TARGET_ARCH", "TARGET_DEVICE", "BOARD_VNDK_VERSION", "RECOVERY_SNAPSHOT_VERSION"):
        monkeypatch.delenv(variable, raising=False)


def test_cli_accepts_verbose_before_and_after_command() -> None:
    parser = _build_parser()

    before = parser.parse_args(["--verbose", "generate", "module-info.json"])
    after = parser.parse_args(["generate", "module-info.json", "--verbose"])

    assert before.verbose is True and after.verbose is True
    assert before.command == "generate"


def test_cli_generate_defaults() -> None:
    args = _build_parser().parse_args(["generate", "module-info.json"])

    assert args.image == "vendor"
    assert args.fake is False
    assert args.dry_run is False
    assert args.out is None


def test_cli_rejects_unknown_image() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["generate", "m.json", "--image", "odm"])


def _write_inputs(root: Path) -> Path:
    (root / ".snapgen.yml").write_text(
        "device:\n  name: generic_arm64\nvndk_version: current\n", encoding="utf-8"
    )
    (root / "out" / "obj").mkdir(parents=True)
    (root / "out" / "obj" / "libfoo.a").write_bytes(b"archive")
    module_info = root / "module-info.json"
    module_info.write_text(
        json.dumps(
            [
                {
                    "name": "libfoo",
                    "kind": "static",
                    "arch": "arm64",
                    "module_dir": "system/libfoo",
                    "output_file": "out/obj/libfoo.a",
                    "images": {"vendor": {"installed": True}},
                },
                {
                    "name": "libacme",
                    "kind": "static",
                    "arch": "arm64",
                    "module_dir": "vendor/acme",
                    "output_file": "out/obj/libacme.a",
                    "images": {"vendor": {"installed": True}},
                },
            ]
        ),
        encoding="utf-8",
    )
    return module_info


def test_generate_dry_run_prints_sorted_outputs(tmp_path: Path, capsys) -> None:
    module_info = _write_inputs(tmp_path)

    main(["generate", str(module_info), "--config", str(tmp_path), "--dry-run"])

    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "vendor-snapshot/arm64/arch-arm64/static/libfoo.a",
        "vendor-snapshot/arm64/arch-arm64/static/libfoo.a.json",
        "SOONG_VENDOR_SNAPSHOT_ZIP := vendor-snapshot/vendor-generic_arm64.zip",
    ]


def test_generate_writes_archive(tmp_path: Path, capsys) -> None:
    module_info = _write_inputs(tmp_path)
    out = tmp_path / "snapshots"

    main(
        [
            "generate",
            str(module_info),
            "--config",
            str(tmp_path),
            "--source-root",
            str(tmp_path),
            "--out",
            str(out),
        ]
    )

    archive = out / "vendor-snapshot" / "vendor-generic_arm64.zip"
    assert str(archive) in capsys.readouterr().out
    with zipfile.ZipFile(archive) as bundle:
        assert bundle.read("arm64/arch-arm64/static/libfoo.a") == b"archive"


def test_generate_reports_disabled_gate(tmp_path: Path, capsys) -> None:
    module_info = _write_inputs(tmp_path)

    main(["generate", str(module_info), "--config", str(tmp_path), "--image", "recovery"])

    assert "disabled" in capsys.readouterr().out


def test_explain_prints_rule(tmp_path: Path, capsys) -> None:
    module_info = _write_inputs(tmp_path)

    main(["explain", str(module_info), "libacme", "--config", str(tmp_path)])

    assert "skipped (rule: proprietary)" in capsys.readouterr().out


def test_missing_module_info_exits_nonzero(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(tmp_path / "missing.json"), "--config", str(tmp_path)])

    assert excinfo.value.code == 1


def test_quiet_limits_console_but_not_log_file(tmp_path: Path) -> None:
    module_info = _write_inputs(tmp_path)
    log_file = tmp_path / "logs" / "snapgen.log"

    main(
        [
            "--quiet",
            "--log-file",
            str(log_file),
            "generate",
            str(module_info),
            "--config",
            str(tmp_path),
            "--dry-run",
        ]
    )

    console, file_sink = logging.getLogger("snapgen").handlers
    assert console.level == logging.WARNING
    assert file_sink.level == logging.INFO
    file_sink.flush()
    assert "Captured 1 of 2 units" in log_file.read_text(encoding="utf-8")
