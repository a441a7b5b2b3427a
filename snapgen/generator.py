"""Drives one snapshot generation pass for one image family."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .builder import SnapshotTreeBuilder
from .classifier import check_snapshot_config, explain
from .images import ImagePolicy
from .logging import family_logger
from .models import BuildAction, CompiledUnit, LibraryUnit, SnapshotMap, SnapshotRun
from .packager import BuildVariables, Packager


@dataclass
class SnapshotPlan:
    """Everything a finished pass hands to the executor and the build."""

    family: str
    fake: bool
    archive: str
    variable: str
    outputs: List[str]
    actions: List[BuildAction]
    snapshot_map: SnapshotMap
    captured: List[str] = field(default_factory=list)


class SnapshotGenerator:
    """Classifies units, lays out the eligible ones and packages the result.

    A generator runs at most one pass at a time; the pass state lives in a
    fresh :class:`SnapshotRun` per :meth:`generate` call.
    """

    def __init__(
        self,
        policy: ImagePolicy,
        *,
        fake: bool = False,
        variables: BuildVariables | None = None,
    ) -> None:
        self.policy = policy
        self.fake = fake
        self.variables = variables or BuildVariables()
        self.logger = family_logger("generator", f"{policy.name}{'-fake' if fake else ''}")

    @property
    def variable_name(self) -> str:
        return self.policy.build_variable(fake=self.fake)

    def generate(self, units: Iterable[CompiledUnit]) -> Optional[SnapshotPlan]:
        """Run a full pass; return None when the family's generation gate is closed."""
        if not self.policy.should_generate_snapshot():
            self.logger.info("Snapshot generation disabled for this build; skipping")
            return None

        candidates = list(units)
        proprietary_flags: List[bool] = []
        # Flag conflicts abort the pass before anything is planned.
        for unit in candidates:
            in_proprietary_path = self.policy.is_proprietary_path(unit.module_dir)
            check_snapshot_config(unit, in_proprietary_path, self.policy)
            proprietary_flags.append(in_proprietary_path)

        run = SnapshotRun()
        builder = SnapshotTreeBuilder(self.policy, run, fake=self.fake)
        headers: List[str] = []
        captured: List[str] = []
        version = self.policy.snapshot_version

        for unit, in_proprietary_path in zip(candidates, proprietary_flags):
            decision = explain(unit, in_proprietary_path, self.policy)
            if not decision.eligible:
                continue

            placeholder = self.policy.exclude_from_directed_snapshot(unit.name)
            if placeholder and not self.fake:
                self.logger.debug("%s not in directed module list; capturing placeholder", unit.name)

            run.outputs.extend(builder.install(unit, placeholder=placeholder))
            if isinstance(unit, LibraryUnit):
                headers.extend(unit.snapshot_headers)
            notice = builder.install_notice(unit, placeholder=placeholder)
            if notice is not None:
                run.outputs.append(notice)

            arch = unit.target.arch_type
            run.snapshot_map.add(unit.name, arch, f"{unit.name}.{self.policy.name}.{version}.{arch}")
            captured.append(unit.identity())

        run.outputs.extend(builder.install_headers(headers))

        packager = Packager(
            builder.layout,
            self.policy.config.device_name,
            self.variables,
            self.variable_name,
        )
        archive = packager.pack(run)
        self.logger.info(
            "Captured %d of %d units into %d outputs (%s)",
            len(captured),
            len(candidates),
            len(run.outputs),
            archive,
        )
        return SnapshotPlan(
            family=self.policy.name,
            fake=self.fake,
            archive=archive,
            variable=self.variable_name,
            outputs=list(run.outputs),
            actions=list(run.actions),
            snapshot_map=run.snapshot_map,
            captured=captured,
        )


__all__ = ["SnapshotGenerator", "SnapshotPlan"]
