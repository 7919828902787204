"""Collaborator protocol definitions.

Defines the ``ClusterClient``, ``MutationSession`` and ``BackupPipeline``
Protocols the round-trip orchestrator drives. All methods are
``async def`` -- the harness is async-first and awaits every call in
sequence.

Usage:
    from table_fidelity.adapters.base import BackupPipeline, ClusterClient

    async def do_work(cluster: ClusterClient, pipeline: BackupPipeline) -> None:
        handle = await cluster.create_table("t", schema, partitioning, 1)
        session = cluster.new_session(handle)
        await session.apply({"id": 1})
        await session.flush()
        await pipeline.backup({"t"}, staging_dir, cluster.master_addresses)
"""

from collections.abc import Collection
from pathlib import Path
from typing import Protocol

from table_fidelity.schema.models import (
    PartitioningSpec,
    RowInstance,
    TableHandle,
    TableSchema,
)


class MutationSession(Protocol):
    """Write session bound to one table.

    Implementations may buffer or pipeline writes; only a completed
    ``flush()`` guarantees that applied rows are visible to readers and to
    a subsequent backup.
    """

    async def apply(self, row: RowInstance) -> None:
        """Queue an upsert of *row*.

        Args:
            row: Column name -> value. ``None`` is an explicit null; a
                missing column takes the stored default.

        Raises:
            ExternalOperationError: If the row is rejected.
        """
        ...

    async def flush(self) -> None:
        """Block until every applied row is durably written.

        Raises:
            ExternalOperationError: If any buffered write fails.
        """
        ...

    async def close(self) -> None:
        """Flush pending writes and release the session."""
        ...


class ClusterClient(Protocol):
    """Storage cluster interface used by the harness.

    Every failure surfaces as ``ExternalOperationError``; callers never
    retry.
    """

    @property
    def master_addresses(self) -> list[str]:
        """Coordinator addresses handed to the backup/restore pipeline."""
        ...

    async def create_table(
        self,
        name: str,
        schema: TableSchema,
        partitioning: PartitioningSpec,
        num_replicas: int,
    ) -> TableHandle:
        """Create a table.

        Raises:
            ExternalOperationError: If the name is taken or the storage
                engine rejects the schema/partitioning combination.
        """
        ...

    async def open_table(self, name: str) -> TableHandle:
        """Open an existing table by name.

        Raises:
            ExternalOperationError: If the table does not exist.
        """
        ...

    def new_session(self, table: TableHandle) -> MutationSession:
        """Start a mutation session on *table*."""
        ...

    async def read_schema(self, table: TableHandle) -> TableSchema:
        """Read the live schema of *table*."""
        ...

    async def read_partitioning(self, table: TableHandle) -> PartitioningSpec:
        """Read the live partitioning of *table*."""
        ...

    async def read_replica_count(self, table: TableHandle) -> int:
        """Read the replication factor of *table*."""
        ...

    async def read_all_rows(self, table: TableHandle) -> list[RowInstance]:
        """Bulk-read every row of *table*, defaults materialised."""
        ...


class BackupPipeline(Protocol):
    """Full-snapshot backup and restore of named tables."""

    restore_suffix: str

    async def backup(
        self,
        table_names: Collection[str],
        destination: Path,
        master_addresses: list[str],
    ) -> None:
        """Back up *table_names* into the *destination* staging location.

        Raises:
            ExternalOperationError: On any backup failure.
        """
        ...

    async def restore(
        self,
        table_names: Collection[str],
        source: Path,
        master_addresses: list[str],
    ) -> None:
        """Restore *table_names* from *source* as ``<name><restore_suffix>``.

        Raises:
            ExternalOperationError: On any restore failure.
        """
        ...
