"""CLI entrypoints for snapgen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .classifier import explain
from .config import ConfigError, SnapshotConfig, load_config
from .executor import execute
from .generator import SnapshotGenerator
from .images import image_names, policy_for
from .logging import configure_logging
from .models import SnapshotError
from .module_info import ModuleInfoError, load_units


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "module_info",
        help="Path to the module-info JSON exported by the build.",
    )
    parser.add_argument(
        "--image",
        choices=image_names(),
        default="vendor",
        help="Partition family to snapshot (defaults to vendor).",
    )
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .snapgen.yml or the directory holding it.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snapgen",
        description="Plan and package platform snapshots from compiled build outputs.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only print warnings and errors on the console; --log-file still records everything.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Classify modules, lay out the snapshot tree and build the archive.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_common_options(generate_parser)
    generate_parser.add_argument(
        "--fake",
        action="store_true",
        help="Write empty placeholders instead of copying artifacts.",
    )
    generate_parser.add_argument(
        "--out",
        default=None,
        help="Output directory (defaults to output_dir from the config, then ./out).",
    )
    generate_parser.add_argument(
        "--source-root",
        default=".",
        help="Root that artifact, header and config paths are relative to.",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the sorted snapshot outputs without writing anything.",
    )

    explain_parser = subparsers.add_parser(
        "explain",
        help="Show why each variant of a module is or is not captured.",
    )
    _add_verbose_option(explain_parser, suppress_default=True)
    _add_common_options(explain_parser)
    explain_parser.add_argument("name", help="Module name to explain.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for snapgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file)

    try:
        config = load_config(Path(args.config))
        units = load_units(Path(args.module_info))
    except (ConfigError, ModuleInfoError, FileNotFoundError) as exc:
        parser.exit(1, f"{exc}\n")
    policy = policy_for(args.image, config)

    if args.command == "generate":
        generator = SnapshotGenerator(policy, fake=bool(args.fake))
        try:
            plan = generator.generate(units)
        except SnapshotError as exc:
            parser.exit(1, f"snapgen generate failed: {exc}\n")
        if plan is None:
            print(f"{policy.name} snapshot generation is disabled for this build")
            return
        if args.dry_run:
            for output in plan.outputs:
                print(output)
            print(f"{plan.variable} := {plan.archive}")
            return
        out_dir = _resolve_out_dir(args.out, config)
        try:
            execute(plan.actions, Path(args.source_root), out_dir)
        except (OSError, ValueError) as exc:
            parser.exit(1, f"snapgen generate failed: {exc}\nRun with --verbose for more details.\n")
        print(f"{plan.variable} := {out_dir / plan.archive}")
    elif args.command == "explain":
        matches = [unit for unit in units if unit.name == args.name]
        if not matches:
            parser.exit(1, f"No module named {args.name!r} in {args.module_info}\n")
        for unit in matches:
            in_proprietary_path = policy.is_proprietary_path(unit.module_dir)
            decision = explain(unit, in_proprietary_path, policy)
            verdict = "captured" if decision.eligible else "skipped"
            print(f"{unit.identity()} [{unit.kind}]: {verdict} (rule: {decision.rule})")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _resolve_out_dir(out: str | None, config: SnapshotConfig) -> Path:
    if out:
        return Path(out)
    if config.output_dir is not None:
        return config.output_dir
    return Path("out")


if __name__ == "__main__":
    main(sys.argv[1:])
