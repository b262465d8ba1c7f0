"""Configuration system for milestone-guard."""

from .loader import get_config_dir, get_config_path, load_config
from .schema import (
    BatchConfig,
    MetricsConfig,
    MilestoneGuardConfig,
    OutputConfig,
    RiskConfig,
    StorageConfig,
    ValidationConfig,
)

__all__ = [
    "MilestoneGuardConfig",
    "ValidationConfig",
    "RiskConfig",
    "BatchConfig",
    "MetricsConfig",
    "StorageConfig",
    "OutputConfig",
    "load_config",
    "get_config_dir",
    "get_config_path",
]
