"""Platform snapshot planner: module classification, tree layout and packaging."""

from .classifier import SnapshotConfigError, explain, is_snapshot_eligible
from .config import SnapshotConfig, load_config
from .generator import SnapshotGenerator, SnapshotPlan
from .images import ImagePolicy, RamdiskImage, RecoveryImage, VendorImage, policy_for

__version__ = "0.1.0"

__all__ = [
    "ImagePolicy",
    "RamdiskImage",
    "RecoveryImage",
    "SnapshotConfig",
    "SnapshotConfigError",
    "SnapshotGenerator",
    "SnapshotPlan",
    "VendorImage",
    "explain",
    "is_snapshot_eligible",
    "load_config",
    "policy_for",
]
