"""Reads the host build's module enumeration from a module-info JSON document.

Accepted shapes are a list of module objects or ``{"modules": [...]}``. Each
module object carries a ``kind`` (``static``, ``shared``, ``header``,
``binary``, ``object``); other kinds load as shapeless units, which the
classifier never captures.
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .coerce import as_bool, as_dict, as_str, as_str_list
from .models import (
    DEVICE,
    Binary,
    CompiledUnit,
    ImageFlags,
    LibraryUnit,
    StaticLibrary,
    Target,
    UNIT_TYPES,
)


class ModuleInfoError(ValueError):
    """Raised when a module-info document cannot be interpreted."""


def load_units(path: Path) -> List[CompiledUnit]:
    """Load every unit listed in the module-info file at ``path``."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise
    except (OSError, json.JSONDecodeError) as exc:
        raise ModuleInfoError(f"Failed to read module info {path}: {exc}") from exc
    return parse_units(payload)


def parse_units(payload: Any) -> List[CompiledUnit]:
    if isinstance(payload, dict):
        payload = payload.get("modules")
    if not isinstance(payload, list):
        raise ModuleInfoError("module info must be a list of modules or contain a 'modules' list")
    return resolve_prebuilt_twins([parse_unit(entry, index) for index, entry in enumerate(payload)])


def resolve_prebuilt_twins(units: List[CompiledUnit]) -> List[CompiledUnit]:
    """Mark the losing half of every source/prebuilt pair as ``skip_install``.

    A prebuilt ``prebuilt_<name>`` (or a prebuilt sharing the source's name)
    pairs with the source module of the same kind and target. The prebuilt
    wins only when it sets ``prefer``.
    """
    groups: Dict[Tuple[str, str, Target], List[int]] = {}
    for index, unit in enumerate(units):
        groups.setdefault((unit.kind, _twin_name(unit), unit.target), []).append(index)

    resolved = list(units)
    for indices in groups.values():
        prebuilts = [i for i in indices if units[i].prebuilt]
        sources = [i for i in indices if not units[i].prebuilt]
        if not prebuilts or not sources:
            continue
        losers = sources if any(units[i].prefer for i in prebuilts) else prebuilts
        for i in losers:
            resolved[i] = replace(units[i], skip_install=True)
    return resolved


def _twin_name(unit: CompiledUnit) -> str:
    return unit.name.removeprefix("prebuilt_") if unit.prebuilt else unit.name


def parse_unit(entry: Any, index: int = 0) -> CompiledUnit:
    if not isinstance(entry, dict):
        raise ModuleInfoError(f"module #{index} is not an object")
    name = as_str(entry.get("name"))
    if not name:
        raise ModuleInfoError(f"module #{index} has no name")
    arch = as_str(entry.get("arch"))
    if not arch:
        raise ModuleInfoError(f"module '{name}' has no arch")

    target = Target(
        arch_type=arch,
        arch_variant=as_str(entry.get("arch_variant")) or "",
        os_class=as_str(entry.get("os_class")) or DEVICE,
        native_bridge=_flag(entry, "native_bridge"),
    )
    kwargs: Dict[str, Any] = {
        "name": name,
        "target": target,
        "module_dir": as_str(entry.get("module_dir")) or "",
        "output_file": as_str(entry.get("output_file")) or None,
        "sanitizers": frozenset(as_str_list(entry.get("sanitizers"))),
        "enabled": _flag(entry, "enabled", default=True),
        "hide_from_make": _flag(entry, "hide_from_make"),
        "skip_install": _flag(entry, "skip_install"),
        "for_platform": _flag(entry, "for_platform", default=True),
        "snapshot_prebuilt": _flag(entry, "snapshot_prebuilt"),
        "prebuilt": _flag(entry, "prebuilt"),
        "prefer": _flag(entry, "prefer"),
        "vndk": _flag(entry, "vndk"),
        "vndk_ext": _flag(entry, "vndk_ext"),
        "vndk_sp": _flag(entry, "vndk_sp"),
        "abi_stub": as_str(entry.get("abi_stub")) or None,
        "relative_install_path": as_str(entry.get("relative_install_path")) or "",
        "shared_libs": as_str_list(entry.get("shared_libs")),
        "runtime_libs": as_str_list(entry.get("runtime_libs")),
        "required": as_str_list(entry.get("required")),
        "init_rc": as_str_list(entry.get("init_rc")),
        "vintf_fragments": as_str_list(entry.get("vintf_fragments")),
        "notice_file": as_str(entry.get("notice_file")) or None,
        "images": _parse_images(entry.get("images")),
    }

    unit_type = UNIT_TYPES.get((as_str(entry.get("kind")) or "").lower(), CompiledUnit)
    if issubclass(unit_type, LibraryUnit):
        kwargs.update(
            exported_dirs=as_str_list(entry.get("exported_dirs")),
            exported_system_dirs=as_str_list(entry.get("exported_system_dirs")),
            exported_flags=as_str_list(entry.get("exported_flags")),
            snapshot_headers=as_str_list(entry.get("snapshot_headers")),
        )
    if issubclass(unit_type, StaticLibrary):
        kwargs.update(
            minimal_runtime_dep=_flag(entry, "minimal_runtime_dep"),
            ubsan_runtime_dep=_flag(entry, "ubsan_runtime_dep"),
        )
    if issubclass(unit_type, Binary):
        kwargs["symlinks"] = as_str_list(entry.get("symlinks"))
    return unit_type(**kwargs)


def _parse_images(value: Any) -> Dict[str, ImageFlags]:
    images: Dict[str, ImageFlags] = {}
    for family, raw in as_dict(value).items():
        flags = as_dict(raw)
        images[str(family)] = ImageFlags(
            installed=_flag(flags, "installed"),
            available=as_bool(flags.get("available")),
            exclude=_flag(flags, "exclude"),
        )
    return images


def _flag(data: Dict[str, Any], key: str, *, default: bool = False) -> bool:
    value = as_bool(data.get(key))
    return default if value is None else value


__all__ = ["ModuleInfoError", "load_units", "parse_unit", "parse_units", "resolve_prebuilt_twins"]
