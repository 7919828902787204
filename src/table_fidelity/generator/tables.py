"""Random, storage-valid table schemas and partitioning.

The generator walks a combinatorial space (type x nullability x encoding x
compression x block size x default x partitioning) and only ever emits
combinations the storage engine accepts:

- key columns use orderable types, are never nullable, never have defaults;
- encodings come from the per-type valid set;
- decimal columns always carry precision/scale;
- hash levels (1 to 3) and the optional range rule use key columns only,
  range partitioning only on an ``int64`` key with distinct split points.

Usage:
    from table_fidelity.generator.tables import generate_schema

    schema, partitioning = generate_schema(seed)
"""

import logging
import random
import time
import uuid

from table_fidelity.generator.rows import ensure_rng, random_value
from table_fidelity.schema.models import (
    MAX_HASH_LEVELS,
    ColumnDescriptor,
    HashPartitionRule,
    PartitioningSpec,
    RangePartitionRule,
    TableSchema,
    TypeAttributes,
)
from table_fidelity.schema.types import (
    BLOCK_SIZES,
    KEY_TYPES,
    MAX_DECIMAL_PRECISION,
    CompressionAlgorithm,
    LogicalType,
    decimal_min_value,
    valid_encodings,
)
from table_fidelity.schema.values import ValueKind, int_bounds

logger = logging.getLogger(__name__)

MAX_COLUMNS = 50
MIN_HASH_BUCKETS = 2
MAX_HASH_BUCKETS = 9
MAX_RANGE_SPLITS = 7


def generate_table_name() -> str:
    """Fresh table name: ``random-<epoch millis>-<8 hex chars>``."""
    return f"random-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def _random_column(rng: random.Random, index: int, is_key: bool) -> ColumnDescriptor:
    all_types = tuple(LogicalType)
    logical_type = rng.choice(KEY_TYPES if is_key else all_types)

    type_attributes = None
    if logical_type is LogicalType.DECIMAL:
        precision = rng.randint(1, MAX_DECIMAL_PRECISION)
        scale = rng.randrange(precision)
        type_attributes = TypeAttributes(precision=precision, scale=scale)

    nullable = not is_key and rng.random() < 0.5
    compression = rng.choice(tuple(CompressionAlgorithm))
    block_size = rng.choice(BLOCK_SIZES)
    encoding = rng.choice(valid_encodings(logical_type))

    default = None
    if not is_key and rng.random() < 0.5:
        if type_attributes is not None:
            default = decimal_min_value(type_attributes.precision, type_attributes.scale)
        else:
            default = random_value(rng, logical_type)

    return ColumnDescriptor(
        name=f"{logical_type.value}-{index}",
        type=logical_type,
        is_key=is_key,
        is_nullable=nullable,
        compression=compression,
        desired_block_size=block_size,
        encoding=encoding,
        default=default,
        type_attributes=type_attributes,
    )


def _random_partitioning(rng: random.Random, schema: TableSchema) -> PartitioningSpec:
    key_columns = schema.key_columns

    hash_rules: list[HashPartitionRule] = []
    last_level = rng.randrange(min(len(key_columns), MAX_HASH_LEVELS))
    for level in range(last_level + 1):
        hash_rules.append(
            HashPartitionRule(
                columns=[key_columns[level].name],
                num_buckets=rng.randint(MIN_HASH_BUCKETS, MAX_HASH_BUCKETS),
                seed=rng.randint(-(2**31), 2**31 - 1),
            )
        )

    range_rule = None
    int64_keys = [c for c in key_columns if c.type is LogicalType.INT64]
    if rng.random() < 0.5 and int64_keys:
        range_column = int64_keys[0]
        split_count = rng.randint(0, MAX_RANGE_SPLITS)
        low, high = int_bounds(ValueKind.INT64)
        splits: list[int] = []
        while len(splits) < split_count:
            value = rng.randint(low, high)
            if value not in splits:
                splits.append(value)
        range_rule = RangePartitionRule(columns=[range_column.name], split_points=splits)

    return PartitioningSpec(hash_rules=hash_rules, range_rule=range_rule)


def generate_schema(
    rng: random.Random | int | None = None,
    max_columns: int = MAX_COLUMNS,
) -> tuple[TableSchema, PartitioningSpec]:
    """Generate a random table schema and a partitioning valid for it.

    Args:
        rng: Random generator or seed. The same seed always yields the same
            schema and partitioning.
        max_columns: Upper bound for the column count (default 50).

    Returns:
        ``(schema, partitioning)``.

    Raises:
        GenerationError: If a type is missing from a dispatch table.

    Example:
        >>> schema, partitioning = generate_schema(42)
        >>> all(not c.is_nullable for c in schema.key_columns)
        True
    """
    if max_columns < 1:
        raise ValueError(f"max_columns must be >= 1, got {max_columns}")
    rng = ensure_rng(rng)

    column_count = rng.randint(1, max_columns)
    key_count = rng.randint(1, column_count)
    columns = [_random_column(rng, i, i < key_count) for i in range(column_count)]
    schema = TableSchema(columns=columns)
    partitioning = _random_partitioning(rng, schema)

    logger.debug(
        "Generated schema: %d columns (%d keys), %d hash levels, range=%s",
        column_count,
        key_count,
        len(partitioning.hash_rules),
        partitioning.range_columns or "none",
    )
    return schema, partitioning
