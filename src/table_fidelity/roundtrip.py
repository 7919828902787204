"""Backup-then-restore round trips with structural verification.

Drives one full-snapshot round trip: create a table (fixed or generated
schema), load random rows, back it up into a fresh staging location,
restore it under a new name, then compare schema, partitioning, replica
count and row count of the source and restored tables.

External failures (table creation, writes, backup, restore) propagate
unchanged. Verification results come back as a ``VerificationReport``;
``report.raise_for_mismatch()`` turns a failed verdict into an assertion
failure with the structural diff attached.

Usage:
    from table_fidelity.roundtrip import run_round_trip

    report = await run_round_trip(cluster, pipeline, seed=1234)
    report.raise_for_mismatch()
"""

import logging
import random
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pydantic import BaseModel

from table_fidelity.adapters.base import BackupPipeline, ClusterClient
from table_fidelity.config.loader import resolve_seed
from table_fidelity.config.models import HarnessConfig
from table_fidelity.errors import VerificationMismatch
from table_fidelity.generator.rows import generate_rows, random_row_count
from table_fidelity.generator.tables import generate_schema, generate_table_name
from table_fidelity.schema.comparator import compare_partitioning, compare_schemas
from table_fidelity.schema.models import (
    PartitioningComparison,
    PartitioningSpec,
    RowInstance,
    SchemaComparison,
    TableHandle,
    TableSchema,
)

logger = logging.getLogger(__name__)


class VerificationReport(BaseModel):
    """Outcome of one round trip: both structural verdicts plus replica and row counts."""

    source_table: str
    restored_table: str
    seed: int | None = None
    rows_loaded: int = 0
    schema_comparison: SchemaComparison
    partitioning_comparison: PartitioningComparison
    replicas_source: int
    replicas_restored: int
    rows_source: int
    rows_restored: int

    @property
    def passed(self) -> bool:
        """True when every check held."""
        return (
            self.schema_comparison.equal
            and self.partitioning_comparison.equal
            and self.replicas_source == self.replicas_restored
            and self.rows_source == self.rows_restored
        )

    def format_report(self) -> str:
        """Format the report as human-readable text."""
        status = "PASSED" if self.passed else "FAILED"
        lines = [f"Round trip {self.source_table} -> {self.restored_table}: {status}"]
        if self.passed:
            return lines[0]

        if self.seed is not None:
            lines.append(f"  Seed: {self.seed}")
        if not self.schema_comparison.equal:
            lines.append(self.schema_comparison.format_report())
        if not self.partitioning_comparison.equal:
            lines.append(self.partitioning_comparison.format_report())
        if self.replicas_source != self.replicas_restored:
            lines.append(
                f"Replica count: {self.replicas_source} != {self.replicas_restored}"
            )
        if self.rows_source != self.rows_restored:
            lines.append(f"Row count: {self.rows_source} != {self.rows_restored}")
        return "\n".join(lines)

    def raise_for_mismatch(self) -> None:
        """Raise ``VerificationMismatch`` with the formatted report if any check failed."""
        if not self.passed:
            raise VerificationMismatch(self.format_report())


@contextmanager
def staging_location(prefix: str = "backup-") -> Iterator[Path]:
    """Create a fresh staging directory and delete it on every exit path."""
    path = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug("Created staging location %s", path)
    try:
        yield path
    finally:
        # A collaborator may already have removed it; never mask the original error.
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("Removed staging location %s", path)


async def load_rows(
    cluster: ClusterClient,
    table: TableHandle,
    rows: list[RowInstance],
) -> None:
    """Upsert *rows* through one session and wait for the flush to complete.

    The flush must finish before a backup starts, otherwise the backup
    may observe a partial table.
    """
    session = cluster.new_session(table)
    try:
        for row in rows:
            await session.apply(row)
        await session.flush()
    finally:
        await session.close()
    logger.info("Loaded %d rows into %s", len(rows), table.name)


async def run_round_trip(
    cluster: ClusterClient,
    pipeline: BackupPipeline,
    *,
    schema: TableSchema | None = None,
    partitioning: PartitioningSpec | None = None,
    table_name: str | None = None,
    load_data: bool | None = None,
    row_count: int | None = None,
    seed: int | None = None,
    config: HarnessConfig | None = None,
) -> VerificationReport:
    """Back up and restore one table, then verify the restored copy.

    Args:
        cluster: Storage cluster client.
        pipeline: Backup/restore pipeline bound to the same cluster.
        schema: Fixed schema to use. When ``None`` a schema and
            partitioning are generated from *seed*.
        partitioning: Partitioning for a fixed *schema* (default: none).
        table_name: Source table name (default: freshly generated).
        load_data: Whether to load generated rows (default from config).
        row_count: Rows to load (default from config, else random
            ``[0, 200]``).
        seed: Seed for all generation (default: ``resolve_seed(config)``).
        config: Harness configuration (default: ``HarnessConfig()``).

    Returns:
        ``VerificationReport`` for the round trip.

    Raises:
        ExternalOperationError: If table creation, writes, backup or
            restore fail. Never retried.
        GenerationError: If the generator hits an unsupported case.

    Example:
        report = await run_round_trip(cluster, pipeline, seed=7)
        report.raise_for_mismatch()
    """
    if schema is None and partitioning is not None:
        raise ValueError("partitioning requires a fixed schema")
    config = config or HarnessConfig()
    if seed is None:
        seed = resolve_seed(config)
    rng = random.Random(seed)

    # 1. Schema and partitioning
    if schema is None:
        schema, partitioning = generate_schema(rng, config.harness.max_columns)
    elif partitioning is None:
        partitioning = PartitioningSpec()
    name = table_name or generate_table_name()

    # 2. Source table
    source = await cluster.create_table(
        name, schema, partitioning, config.cluster.num_replicas
    )

    # 3. Data, flushed before backup
    if load_data is None:
        load_data = config.harness.load_data
    rows_loaded = 0
    if load_data:
        if row_count is None:
            row_count = config.harness.row_count
        if row_count is None:
            row_count = random_row_count(rng)
        rows = generate_rows(schema, row_count, rng)
        await load_rows(cluster, source, rows)
        rows_loaded = len(rows)

    # 4-5. Backup and restore through a scoped staging location
    addresses = cluster.master_addresses
    with staging_location() as staging:
        await pipeline.backup({name}, staging, addresses)
        await pipeline.restore({name}, staging, addresses)

    restored = await cluster.open_table(f"{name}{pipeline.restore_suffix}")

    # 6-7. Structural read-back and comparison
    schema_result = compare_schemas(
        await cluster.read_schema(source), await cluster.read_schema(restored)
    )
    partitioning_result = compare_partitioning(
        await cluster.read_partitioning(source),
        await cluster.read_partitioning(restored),
    )

    # 8. Row counts, read independently
    source_rows = await cluster.read_all_rows(source)
    restored_rows = await cluster.read_all_rows(restored)

    report = VerificationReport(
        source_table=source.name,
        restored_table=restored.name,
        seed=seed,
        rows_loaded=rows_loaded,
        schema_comparison=schema_result,
        partitioning_comparison=partitioning_result,
        replicas_source=await cluster.read_replica_count(source),
        replicas_restored=await cluster.read_replica_count(restored),
        rows_source=len(source_rows),
        rows_restored=len(restored_rows),
    )
    if report.passed:
        logger.info("%s", report.format_report())
    else:
        logger.error("%s", report.format_report())
    return report
