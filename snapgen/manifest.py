"""Per-artifact metadata records written next to every captured file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List

# Serialized key for every field, in emission order. Downstream tooling parses
# these files; keys and order must not change.
_JSON_KEYS = {
    "module_name": "ModuleName",
    "relative_install_path": "RelativeInstallPath",
    "exported_dirs": "ExportedDirs",
    "exported_system_dirs": "ExportedSystemDirs",
    "exported_flags": "ExportedFlags",
    "sanitize": "Sanitize",
    "sanitize_minimal_dep": "SanitizeMinimalDep",
    "sanitize_ubsan_dep": "SanitizeUbsanDep",
    "symlinks": "Symlinks",
    "shared_libs": "SharedLibs",
    "runtime_libs": "RuntimeLibs",
    "required": "Required",
    "init_rc": "InitRc",
    "vintf_fragments": "VintfFragments",
}


@dataclass
class ArtifactMetadataRecord:
    """Manifest describing one captured unit."""

    module_name: str
    relative_install_path: str = ""
    exported_dirs: List[str] = field(default_factory=list)
    exported_system_dirs: List[str] = field(default_factory=list)
    exported_flags: List[str] = field(default_factory=list)
    sanitize: str = ""
    sanitize_minimal_dep: bool = False
    sanitize_ubsan_dep: bool = False
    symlinks: List[str] = field(default_factory=list)
    shared_libs: List[str] = field(default_factory=list)
    runtime_libs: List[str] = field(default_factory=list)
    required: List[str] = field(default_factory=list)
    init_rc: List[str] = field(default_factory=list)
    vintf_fragments: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Return the manifest mapping with empty and false fields omitted."""
        payload: Dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if not value:
                continue
            payload[_JSON_KEYS[item.name]] = list(value) if isinstance(value, list) else value
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


__all__ = ["ArtifactMetadataRecord"]
