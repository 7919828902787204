"""CLI for the backup/restore fidelity harness.

Runs randomized round trips against the in-process cluster and local
snapshot pipeline, prints generated schemas, and validates snapshot files.

Usage:
    table-fidelity generate --seed 42
    table-fidelity run --iterations 20
    table-fidelity run --fixture decimal --rows 50
    FIDELITY_SEED=1234 table-fidelity run --config fidelity.toml
    table-fidelity validate-snapshot /tmp/backup-xyz/random-1/snapshot.json

Commands:
    generate           - Print a generated schema and partitioning
    run                - Run round trips and verify each restored table
    validate-snapshot  - Validate a snapshot file
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from table_fidelity.adapters.memory import InMemoryCluster
from table_fidelity.backup.local import LocalSnapshotPipeline, validate_snapshot
from table_fidelity.config.loader import load_harness_config, resolve_seed
from table_fidelity.config.models import HarnessConfig
from table_fidelity.errors import ConfigError, ExternalOperationError, GenerationError
from table_fidelity.fixtures import decimal_fixture_schema, fixture_schema
from table_fidelity.generator.tables import MAX_COLUMNS, generate_schema
from table_fidelity.roundtrip import run_round_trip
from table_fidelity.schema.models import PartitioningSpec, TableSchema

console = Console()

# Fixed schemas selectable with `run --fixture`
FIXTURES = {
    "simple": fixture_schema,
    "decimal": decimal_fixture_schema,
}


# ============================================================================
# Rendering helpers
# ============================================================================


def _schema_table(schema: TableSchema) -> Table:
    table = Table(title="Columns", show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Key")
    table.add_column("Null")
    table.add_column("Encoding")
    table.add_column("Compression")
    table.add_column("Block")
    table.add_column("Default", overflow="ellipsis", max_width=30)

    for i, col in enumerate(schema.columns):
        type_name = col.type.value
        if col.type_attributes is not None:
            type_name += f"({col.type_attributes.precision},{col.type_attributes.scale})"
        table.add_row(
            str(i),
            f"[bold cyan]{col.name}[/bold cyan]" if col.is_key else col.name,
            type_name,
            "*" if col.is_key else "",
            "*" if col.is_nullable else "",
            col.encoding.value,
            col.compression.value,
            str(col.desired_block_size),
            "" if col.default is None else repr(col.default),
        )
    return table


def _partitioning_table(partitioning: PartitioningSpec) -> Table:
    table = Table(title="Partitioning", show_header=True, header_style="bold")
    table.add_column("Rule")
    table.add_column("Columns")
    table.add_column("Detail")

    for level, rule in enumerate(partitioning.hash_rules):
        table.add_row(
            f"hash[{level}]",
            ", ".join(rule.columns),
            f"buckets={rule.num_buckets} seed={rule.seed}",
        )
    if partitioning.range_rule is not None:
        table.add_row(
            "range",
            ", ".join(partitioning.range_rule.columns),
            f"{len(partitioning.range_rule.split_points)} split points",
        )
    return table


def _load_config(path: str | None) -> HarnessConfig:
    if path is None:
        return HarnessConfig()
    return load_harness_config(Path(path))


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_run(args: argparse.Namespace) -> int:
    """Async implementation for run command.

    Args:
        args: Parsed arguments with config, seed, iterations, rows, no_data,
            fixture.

    Returns:
        0 if every round trip passed, 1 otherwise.
    """
    try:
        config = _load_config(args.config)
        base_seed = args.seed if args.seed is not None else resolve_seed(config)
    except (FileNotFoundError, ConfigError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    schema = partitioning = None
    if args.fixture is not None:
        schema, partitioning = FIXTURES[args.fixture]()

    for i in range(args.iterations):
        seed = base_seed + i
        cluster = InMemoryCluster(config.cluster.master_addresses)
        pipeline = LocalSnapshotPipeline(cluster, config.harness.restore_suffix)

        try:
            report = await run_round_trip(
                cluster,
                pipeline,
                schema=schema,
                partitioning=partitioning,
                seed=seed,
                row_count=args.rows,
                load_data=False if args.no_data else None,
                config=config,
            )
        except (ExternalOperationError, GenerationError) as e:
            console.print(f"[bold red]x[/bold red] seed {seed}: {type(e).__name__}: {e}")
            return 1

        if report.passed:
            console.print(
                f"[bold green]v[/bold green] seed {seed}: "
                f"{report.schema_comparison.column_count_before} columns, "
                f"{report.rows_source} rows"
            )
        else:
            console.print(f"[bold red]x[/bold red] seed {seed}")
            console.print(report.format_report())
            return 1

    console.print(f"\n[green]{args.iterations} round trip(s) passed[/green]")
    return 0


# ============================================================================
# Command wrappers
# ============================================================================


def cmd_generate(args: argparse.Namespace) -> int:
    """Print a generated schema and partitioning.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 always (informational command).
    """
    seed = args.seed if args.seed is not None else resolve_seed()
    schema, partitioning = generate_schema(seed, args.max_columns)

    console.print(f"Seed: [bold]{seed}[/bold]")
    console.print(_schema_table(schema))
    console.print(_partitioning_table(partitioning))
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run round trips and verify each restored table.

    Wraps the async implementation with ``asyncio.run()``.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on the first failure.
    """
    return asyncio.run(_async_run(args))


def cmd_validate_snapshot(args: argparse.Namespace) -> int:
    """Validate a snapshot file.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 if valid, 1 otherwise.
    """
    result = validate_snapshot(args.snapshot_path)

    console.print(f"Validating: {args.snapshot_path}")

    if result["errors"]:
        console.print(f"\n[bold red]INVALID[/bold red] - {len(result['errors'])} errors:")
        for error in result["errors"]:
            console.print(f"   - {error}")

    if result["warnings"]:
        console.print(f"\n[yellow]{len(result['warnings'])} warnings:[/yellow]")
        for warning in result["warnings"]:
            console.print(f"   - {warning}")

    if result["valid"]:
        console.print("\n[green]Snapshot is valid[/green]")
        return 0
    return 1


# ============================================================================
# Main entry point
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="table-fidelity",
        description="Randomized backup/restore fidelity harness",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # generate command
    p_generate = subparsers.add_parser(
        "generate",
        help="Print a generated schema and partitioning",
    )
    p_generate.add_argument("--seed", type=int, help="Generator seed")
    p_generate.add_argument(
        "--max-columns",
        type=int,
        default=MAX_COLUMNS,
        help=f"Upper bound for the column count (default: {MAX_COLUMNS})",
    )
    p_generate.set_defaults(func=cmd_generate)

    # run command
    p_run = subparsers.add_parser(
        "run",
        help="Run round trips against the in-process cluster",
    )
    p_run.add_argument("--config", help="Path to fidelity.toml")
    p_run.add_argument("--seed", type=int, help="Seed of the first round trip")
    p_run.add_argument(
        "--iterations",
        "-n",
        type=int,
        default=1,
        help="Number of round trips; seeds increase by one per trip",
    )
    p_run.add_argument("--rows", type=int, help="Rows to load per table")
    p_run.add_argument(
        "--no-data",
        action="store_true",
        help="Round-trip empty tables",
    )
    p_run.add_argument(
        "--fixture",
        choices=sorted(FIXTURES),
        help="Use a fixed schema instead of a generated one",
    )
    p_run.set_defaults(func=cmd_run)

    # validate-snapshot command
    p_validate = subparsers.add_parser(
        "validate-snapshot",
        help="Validate a snapshot file",
    )
    p_validate.add_argument("snapshot_path", help="Path to snapshot.json")
    p_validate.set_defaults(func=cmd_validate_snapshot)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
