"""Full-table snapshot backup and restore over a ``ClusterClient``.

``LocalSnapshotPipeline`` implements the ``BackupPipeline`` protocol with
one JSON file per table under the staging location
(``<destination>/<table>/snapshot.json``). Restore recreates each table as
``<table><restore_suffix>`` with the snapshot's schema, partitioning and
replica count, then reloads its rows. It exercises the harness end to end
without a real backup job; it is not the production backup format.

Usage:
    from table_fidelity.backup.local import LocalSnapshotPipeline, validate_snapshot

    pipeline = LocalSnapshotPipeline(cluster)
    await pipeline.backup({"t"}, staging, cluster.master_addresses)
    await pipeline.restore({"t"}, staging, cluster.master_addresses)

    report = validate_snapshot(staging / "t" / "snapshot.json")
"""

import json
import logging
from collections.abc import Collection
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from table_fidelity.adapters.base import ClusterClient
from table_fidelity.backup.models import SNAPSHOT_FILENAME, SNAPSHOT_VERSION, SnapshotMetadata
from table_fidelity.errors import ExternalOperationError
from table_fidelity.schema.models import ColumnDescriptor, PartitioningSpec, TableSchema
from table_fidelity.schema.types import LogicalType
from table_fidelity.schema.values import decode_value, encode_value

logger = logging.getLogger(__name__)

DEFAULT_RESTORE_SUFFIX = "-restore"

_REQUIRED_KEYS = ("metadata", "schema", "partitioning", "num_replicas", "rows")
_REQUIRED_METADATA = ("created_at", "table_name", "backup_type", "version", "row_count")


# ============================================================================
# Encoding helpers
# ============================================================================


def _encode_schema(schema: TableSchema) -> dict[str, Any]:
    columns = []
    for col in schema.columns:
        data = col.model_dump(mode="json", exclude={"default"})
        data["default"] = encode_value(col.type, col.default)
        columns.append(data)
    return {"columns": columns}


def _decode_schema(data: dict[str, Any]) -> TableSchema:
    columns = []
    for col_data in data["columns"]:
        logical_type = LogicalType(col_data["type"])
        columns.append(
            ColumnDescriptor.model_validate(
                {**col_data, "default": decode_value(logical_type, col_data.get("default"))}
            )
        )
    return TableSchema(columns=columns)


def _encode_row(schema: TableSchema, row: dict[str, Any]) -> dict[str, Any]:
    return {col.name: encode_value(col.type, row.get(col.name)) for col in schema.columns}


def _decode_row(schema: TableSchema, data: dict[str, Any]) -> dict[str, Any]:
    return {
        col.name: decode_value(col.type, data[col.name])
        for col in schema.columns
        if col.name in data
    }


def snapshot_path(root: Path, table_name: str) -> Path:
    """Location of *table_name*'s snapshot under *root*."""
    return Path(root) / table_name / SNAPSHOT_FILENAME


# ============================================================================
# Pipeline
# ============================================================================


class LocalSnapshotPipeline:
    """JSON snapshot implementation of the ``BackupPipeline`` protocol.

    Args:
        cluster: Cluster the tables are read from and restored into.
        restore_suffix: Appended to each table name on restore.
    """

    def __init__(
        self,
        cluster: ClusterClient,
        restore_suffix: str = DEFAULT_RESTORE_SUFFIX,
    ) -> None:
        if not restore_suffix:
            raise ValueError("restore_suffix must be non-empty")
        self._cluster = cluster
        self.restore_suffix = restore_suffix

    def _check_addresses(self, master_addresses: list[str]) -> None:
        if sorted(master_addresses) != sorted(self._cluster.master_addresses):
            raise ExternalOperationError(
                f"Unknown cluster {master_addresses}; "
                f"pipeline is bound to {self._cluster.master_addresses}"
            )

    async def backup(
        self,
        table_names: Collection[str],
        destination: Path,
        master_addresses: list[str],
    ) -> None:
        """Write a full snapshot of each table into *destination*."""
        self._check_addresses(master_addresses)
        destination = Path(destination)
        if not destination.is_dir():
            raise ExternalOperationError(f"Backup destination not found: {destination}")

        for name in sorted(table_names):
            handle = await self._cluster.open_table(name)
            schema = await self._cluster.read_schema(handle)
            partitioning = await self._cluster.read_partitioning(handle)
            replicas = await self._cluster.read_replica_count(handle)
            rows = await self._cluster.read_all_rows(handle)

            metadata = SnapshotMetadata(
                table_name=name,
                row_count=len(rows),
                master_addresses=master_addresses,
            )
            snapshot = {
                "metadata": metadata.model_dump(),
                "schema": _encode_schema(schema),
                "partitioning": partitioning.model_dump(mode="json"),
                "num_replicas": replicas,
                "rows": [_encode_row(schema, row) for row in rows],
            }

            path = snapshot_path(destination, name)
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(path, "w") as f:
                    json.dump(snapshot, f, indent=2)
            except OSError as e:
                raise ExternalOperationError(f"Backup of '{name}' failed: {e}") from e
            logger.info("Backed up %s (%d rows) to %s", name, len(rows), path)

    async def restore(
        self,
        table_names: Collection[str],
        source: Path,
        master_addresses: list[str],
    ) -> None:
        """Recreate each table from *source* as ``<name><restore_suffix>``."""
        self._check_addresses(master_addresses)

        for name in sorted(table_names):
            path = snapshot_path(Path(source), name)
            report = validate_snapshot(path)
            if report["errors"]:
                raise ExternalOperationError(
                    f"Invalid snapshot for '{name}': {'; '.join(report['errors'])}"
                )

            with open(path) as f:
                snapshot = json.load(f)
            try:
                schema = _decode_schema(snapshot["schema"])
                partitioning = PartitioningSpec.model_validate(snapshot["partitioning"])
                rows = [_decode_row(schema, data) for data in snapshot["rows"]]
            except (AttributeError, TypeError, ValueError) as e:
                raise ExternalOperationError(
                    f"Snapshot for '{name}' cannot be decoded: {e}"
                ) from e

            target = f"{name}{self.restore_suffix}"
            handle = await self._cluster.create_table(
                target, schema, partitioning, snapshot["num_replicas"]
            )
            session = self._cluster.new_session(handle)
            try:
                for row in rows:
                    await session.apply(row)
                await session.flush()
            finally:
                await session.close()
            logger.info("Restored %s into %s", name, target)


# ============================================================================
# Validation
# ============================================================================


def validate_snapshot(path: str | Path) -> dict:
    """Validate snapshot file format and data integrity.

    Checks that the file is well-formed JSON, has the required sections and
    metadata fields, uses version ``"1.0"``, that the schema and
    partitioning parse, and that the row count and row columns are
    consistent with the schema.

    Args:
        path: Path to a ``snapshot.json`` file.

    Returns:
        Dict with ``valid`` (bool), ``errors`` (list[str]),
        and ``warnings`` (list[str]).

    Example:
        report = validate_snapshot(staging / "t" / "snapshot.json")
        if report["errors"]:
            raise ValueError("Snapshot is invalid")
    """
    errors: list[str] = []
    warnings: list[str] = []

    try:
        with open(path) as f:
            snapshot = json.load(f)
    except FileNotFoundError:
        errors.append(f"Snapshot file not found: {path}")
        return {"valid": False, "errors": errors, "warnings": warnings}
    except json.JSONDecodeError as e:
        errors.append(f"Invalid JSON: {e}")
        return {"valid": False, "errors": errors, "warnings": warnings}

    if not isinstance(snapshot, dict):
        errors.append(f"Snapshot must be a JSON object, got {type(snapshot).__name__}")
        return {"valid": False, "errors": errors, "warnings": warnings}

    for key in _REQUIRED_KEYS:
        if key not in snapshot:
            errors.append(f"Missing required key: {key}")
    if errors:
        return {"valid": False, "errors": errors, "warnings": warnings}

    metadata = snapshot["metadata"]
    if not isinstance(metadata, dict):
        errors.append(f"metadata must be an object, got {type(metadata).__name__}")
    rows = snapshot["rows"]
    if not isinstance(rows, list):
        errors.append(f"rows must be a list, got {type(rows).__name__}")
    replicas = snapshot["num_replicas"]
    if not isinstance(replicas, int) or isinstance(replicas, bool) or replicas < 1:
        errors.append(f"num_replicas must be a positive integer, got {replicas!r}")
    if errors:
        return {"valid": False, "errors": errors, "warnings": warnings}

    for key in _REQUIRED_METADATA:
        if key not in metadata:
            warnings.append(f"Missing metadata field: {key}")

    version = metadata.get("version")
    if version != SNAPSHOT_VERSION:
        errors.append(
            f"Unsupported snapshot version '{version}' (expected '{SNAPSHOT_VERSION}')"
        )

    try:
        schema = _decode_schema(snapshot["schema"])
        partitioning = PartitioningSpec.model_validate(snapshot["partitioning"])
        partitioning.check_against(schema)
    except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as e:
        errors.append(f"Invalid schema or partitioning: {e}")
        return {"valid": False, "errors": errors, "warnings": warnings}

    expected = metadata.get("row_count")
    if expected is not None and expected != len(rows):
        errors.append(f"Row count mismatch: metadata says {expected}, found {len(rows)}")

    column_names = {c.name for c in schema.columns}
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            errors.append(f"Row {i} must be an object, got {type(row).__name__}")
            continue
        missing = column_names - set(row)
        if missing:
            errors.append(f"Row {i} missing columns: {', '.join(sorted(missing))}")

    valid = len(errors) == 0
    return {"valid": valid, "errors": errors, "warnings": warnings}
