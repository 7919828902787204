"""Local full-snapshot backup/restore pipeline.

Provides ``LocalSnapshotPipeline`` (a ``BackupPipeline`` writing JSON
snapshots) and ``validate_snapshot``.

Usage:
    from table_fidelity.backup import LocalSnapshotPipeline, validate_snapshot
"""

from table_fidelity.backup.local import (
    DEFAULT_RESTORE_SUFFIX,
    LocalSnapshotPipeline,
    snapshot_path,
    validate_snapshot,
)
from table_fidelity.backup.models import SnapshotMetadata

__all__ = [
    "DEFAULT_RESTORE_SUFFIX",
    "LocalSnapshotPipeline",
    "SnapshotMetadata",
    "snapshot_path",
    "validate_snapshot",
]
