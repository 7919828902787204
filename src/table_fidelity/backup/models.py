"""Snapshot metadata model for the local backup pipeline.

Usage:
    from table_fidelity.backup.models import SnapshotMetadata

    meta = SnapshotMetadata(table_name="t", row_count=100,
                            master_addresses=["127.0.0.1:7051"])
"""

from datetime import datetime

from pydantic import BaseModel, Field

SNAPSHOT_VERSION = "1.0"
SNAPSHOT_FILENAME = "snapshot.json"


class SnapshotMetadata(BaseModel):
    """Header of one table snapshot file."""

    table_name: str                                   # source table name
    row_count: int                                    # rows in the snapshot
    master_addresses: list[str] = Field(default_factory=list)
    backup_type: str = "full"                         # only full snapshots exist
    version: str = SNAPSHOT_VERSION
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())
