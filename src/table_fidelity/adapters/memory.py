"""In-process storage cluster.

Provides ``InMemoryCluster``, a ``ClusterClient`` implementation that keeps
tables in memory and enforces the same structural rules the real storage
engine does at table creation and at write time. It backs the CLI
self-check and the test suite; production runs plug in a real cluster
client instead.

Usage:
    from table_fidelity.adapters.memory import InMemoryCluster

    cluster = InMemoryCluster(["127.0.0.1:7051"])
    handle = await cluster.create_table("t", schema, partitioning, num_replicas=1)
    session = cluster.new_session(handle)
    await session.apply({"id": 1, "name": None})
    await session.flush()
    rows = await cluster.read_all_rows(handle)
"""

import logging
import uuid
from typing import Any

from pydantic import BaseModel, Field

from table_fidelity.errors import ExternalOperationError
from table_fidelity.schema.models import (
    PartitioningSpec,
    RowInstance,
    TableHandle,
    TableSchema,
)
from table_fidelity.schema.types import LogicalType
from table_fidelity.schema.values import check_value

logger = logging.getLogger(__name__)


class _StoredTable(BaseModel):
    """Server-side state of one table."""

    table_id: str
    table_schema: TableSchema
    partitioning: PartitioningSpec
    num_replicas: int
    rows: dict[tuple, dict[str, Any]] = Field(default_factory=dict)


class InMemorySession:
    """Buffered mutation session; rows become visible on ``flush()``."""

    def __init__(self, cluster: "InMemoryCluster", table: TableHandle) -> None:
        self._cluster = cluster
        self._table = table
        self._pending: list[tuple[tuple, dict[str, Any]]] = []
        self._closed = False

    @property
    def pending_count(self) -> int:
        """Rows applied but not yet flushed."""
        return len(self._pending)

    async def apply(self, row: RowInstance) -> None:
        """Validate *row* and queue it as an upsert."""
        if self._closed:
            raise ExternalOperationError("Session is closed")
        stored = self._cluster._get(self._table.name)
        self._pending.append(_materialize(stored.table_schema, row))

    async def flush(self) -> None:
        """Write every queued row to the table."""
        stored = self._cluster._get(self._table.name)
        for key, values in self._pending:
            stored.rows[key] = values
        logger.debug("Flushed %d rows into %s", len(self._pending), self._table.name)
        self._pending.clear()

    async def close(self) -> None:
        """Flush and mark the session closed."""
        if not self._closed:
            await self.flush()
            self._closed = True


def _materialize(schema: TableSchema, row: RowInstance) -> tuple[tuple, dict[str, Any]]:
    """Return ``(primary key, full row)`` with defaults filled in.

    Raises:
        ExternalOperationError: If the row violates the schema.
    """
    known = {c.name for c in schema.columns}
    unknown = sorted(set(row) - known)
    if unknown:
        raise ExternalOperationError(f"Unknown columns in row: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for col in schema.columns:
        if col.name in row:
            value = row[col.name]
        elif col.default is not None:
            value = col.default
        elif col.is_nullable:
            value = None
        else:
            raise ExternalOperationError(
                f"Missing value for non-nullable column '{col.name}'"
            )

        if value is None:
            if not col.is_nullable:
                raise ExternalOperationError(f"Null value for non-nullable column '{col.name}'")
        else:
            attrs = col.type_attributes
            try:
                check_value(
                    col.type,
                    value,
                    precision=attrs.precision if attrs else None,
                    scale=attrs.scale if attrs else None,
                )
            except ValueError as e:
                raise ExternalOperationError(f"Column '{col.name}': {e}") from e
            if col.type is LogicalType.BINARY:
                value = bytes(value)
        values[col.name] = value

    key = tuple(values[c.name] for c in schema.key_columns)
    return key, values


class InMemoryCluster:
    """In-memory implementation of the ``ClusterClient`` protocol.

    Args:
        master_addresses: Addresses reported to the backup pipeline.

    Example:
        cluster = InMemoryCluster(["127.0.0.1:7051"])
        handle = await cluster.create_table("t", schema, partitioning, 1)
    """

    def __init__(self, master_addresses: list[str] | None = None) -> None:
        self._master_addresses = list(master_addresses or ["127.0.0.1:7051"])
        self._tables: dict[str, _StoredTable] = {}

    @property
    def master_addresses(self) -> list[str]:
        return list(self._master_addresses)

    def table_names(self) -> list[str]:
        """Names of all tables, sorted."""
        return sorted(self._tables)

    def _get(self, name: str) -> _StoredTable:
        try:
            return self._tables[name]
        except KeyError:
            raise ExternalOperationError(f"Table '{name}' does not exist") from None

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    async def create_table(
        self,
        name: str,
        schema: TableSchema,
        partitioning: PartitioningSpec,
        num_replicas: int,
    ) -> TableHandle:
        """Create a table after validating partitioning and replica count."""
        if name in self._tables:
            raise ExternalOperationError(f"Table '{name}' already exists")
        if num_replicas < 1:
            raise ExternalOperationError(f"Invalid replica count {num_replicas}")
        try:
            partitioning.check_against(schema)
        except ValueError as e:
            raise ExternalOperationError(f"Invalid partitioning for '{name}': {e}") from e

        table_id = uuid.uuid4().hex
        self._tables[name] = _StoredTable(
            table_id=table_id,
            table_schema=schema.model_copy(deep=True),
            partitioning=partitioning.model_copy(deep=True),
            num_replicas=num_replicas,
        )
        logger.info("Created table %s (%d columns)", name, len(schema.columns))
        return TableHandle(name=name, table_id=table_id)

    async def open_table(self, name: str) -> TableHandle:
        return TableHandle(name=name, table_id=self._get(name).table_id)

    def new_session(self, table: TableHandle) -> InMemorySession:
        self._get(table.name)
        return InMemorySession(self, table)

    # ------------------------------------------------------------------
    # Read-back
    # ------------------------------------------------------------------

    async def read_schema(self, table: TableHandle) -> TableSchema:
        return self._get(table.name).table_schema.model_copy(deep=True)

    async def read_partitioning(self, table: TableHandle) -> PartitioningSpec:
        return self._get(table.name).partitioning.model_copy(deep=True)

    async def read_replica_count(self, table: TableHandle) -> int:
        return self._get(table.name).num_replicas

    async def read_all_rows(self, table: TableHandle) -> list[RowInstance]:
        return [dict(values) for values in self._get(table.name).rows.values()]
