"""Configuration loading for snapgen (.snapgen.yml plus build environment)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional

import yaml

from .coerce import as_bool, as_dict, as_str, as_str_list

CONFIG_FILENAME = ".snapgen.yml"
CURRENT = "current"

# Build environment variables that override file settings.
_ENV_OVERRIDES = {
    "TARGET_ARCH": "device_arch",
    "TARGET_DEVICE": "device_name",
    "BOARD_VNDK_VERSION": "vndk_version",
    "RECOVERY_SNAPSHOT_VERSION": "recovery_snapshot_version",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class DirectedSnapshot:
    """Directed snapshot settings for one image family."""

    enabled: bool = False
    modules: FrozenSet[str] = frozenset()

    def excludes(self, name: str) -> bool:
        """Return True when ``name`` must be captured as a placeholder only."""
        if not self.enabled:
            return False
        return name not in self.modules


@dataclass(frozen=True)
class SnapshotConfig:
    """Immutable build settings shared by every snapgen component."""

    root: Path
    device_arch: str = "arm64"
    device_name: str = "generic"
    vndk_version: str = ""
    recovery_snapshot_version: str = ""
    output_dir: Optional[Path] = None
    directed: Mapping[str, DirectedSnapshot] = field(default_factory=dict)
    ramdisk_dirs_excluded: FrozenSet[str] = frozenset()
    ramdisk_dirs_included: FrozenSet[str] = frozenset()

    def directed_for(self, family: str) -> DirectedSnapshot:
        return self.directed.get(family, DirectedSnapshot())


def load_config(
    config_path: Path, env: Mapping[str, str] | None = None
) -> SnapshotConfig:
    """Load configuration from disk and apply build environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    environ = os.environ if env is None else env

    if not config_file.exists():
        return apply_env_overrides(SnapshotConfig(root=root), environ)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    device = as_dict(data.get("device"))
    output_dir = as_str(data.get("output_dir"))

    directed: Dict[str, DirectedSnapshot] = {}
    snapshots = as_dict(data.get("snapshots"))
    for family, raw in snapshots.items():
        settings = as_dict(raw)
        modules = frozenset(as_str_list(settings.get("modules")))
        enabled = as_bool(settings.get("directed"))
        if enabled is None:
            enabled = False
        directed[str(family)] = DirectedSnapshot(enabled=enabled, modules=modules)

    ramdisk = as_dict(snapshots.get("ramdisk"))

    config = SnapshotConfig(
        root=root,
        device_arch=as_str(device.get("arch")) or "arm64",
        device_name=as_str(device.get("name")) or "generic",
        vndk_version=as_str(data.get("vndk_version")) or "",
        recovery_snapshot_version=as_str(data.get("recovery_snapshot_version")) or "",
        output_dir=root / output_dir if output_dir else None,
        directed=directed,
        ramdisk_dirs_excluded=frozenset(
            _normalise_dir(item) for item in as_str_list(ramdisk.get("dirs_excluded"))
        ),
        ramdisk_dirs_included=frozenset(
            _normalise_dir(item) for item in as_str_list(ramdisk.get("dirs_included"))
        ),
    )
    return apply_env_overrides(config, environ)


def apply_env_overrides(
    config: SnapshotConfig, env: Mapping[str, str]
) -> SnapshotConfig:
    """Return a copy of ``config`` with non-empty environment values applied."""
    overrides: Dict[str, Any] = {}
    for variable, attribute in _ENV_OVERRIDES.items():
        value = env.get(variable, "").strip()
        if value:
            overrides[attribute] = value
    if not overrides:
        return config
    return replace(config, **overrides)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _normalise_dir(value: str) -> str:
    return value.strip().strip("/")


__all__ = [
    "CURRENT",
    "ConfigError",
    "DirectedSnapshot",
    "SnapshotConfig",
    "apply_env_overrides",
    "load_config",
]
