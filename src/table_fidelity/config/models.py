"""Pydantic models for harness configuration."""

from pydantic import BaseModel, Field

from table_fidelity.generator.tables import MAX_COLUMNS


# ============================================================================
# Configuration Models
# ============================================================================


class ClusterSettings(BaseModel):
    """Cluster connection settings from the ``[cluster]`` table."""

    master_addresses: list[str] = Field(default_factory=lambda: ["127.0.0.1:7051"])
    num_replicas: int = Field(default=1, ge=1)


class HarnessSettings(BaseModel):
    """Round-trip settings from the ``[harness]`` table."""

    restore_suffix: str = Field(default="-restore", min_length=1)
    max_columns: int = Field(default=MAX_COLUMNS, ge=1)
    row_count: int | None = Field(default=None, ge=0)  # None -> random [0, 200]
    load_data: bool = True
    seed: int | None = None


class HarnessConfig(BaseModel):
    """Complete harness configuration from ``fidelity.toml``."""

    cluster: ClusterSettings = Field(default_factory=ClusterSettings)
    harness: HarnessSettings = Field(default_factory=HarnessSettings)
