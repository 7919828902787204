"""Configuration management: TOML loading, seed resolution, and config models.

Usage:
    >>> from table_fidelity.config import load_harness_config, resolve_seed, HarnessConfig
"""

from table_fidelity.config.loader import load_harness_config, resolve_seed
from table_fidelity.config.models import ClusterSettings, HarnessConfig, HarnessSettings

__all__ = [
    "load_harness_config",
    "resolve_seed",
    "ClusterSettings",
    "HarnessConfig",
    "HarnessSettings",
]
