"""Fixed schemas for deterministic round trips.

``fixture_schema`` is the small two-column table used for the simple
round trip; ``decimal_fixture_schema`` pins a DECIMAL(9,2) column with a
default so precision, scale and default preservation can be checked
exactly.
"""

from decimal import Decimal

from table_fidelity.schema.models import (
    ColumnDescriptor,
    HashPartitionRule,
    PartitioningSpec,
    TableSchema,
    TypeAttributes,
)
from table_fidelity.schema.types import LogicalType


def fixture_schema() -> tuple[TableSchema, PartitioningSpec]:
    """INT64 key plus a nullable STRING, hashed into 4 buckets with seed 7."""
    schema = TableSchema(
        columns=[
            ColumnDescriptor(name="key", type=LogicalType.INT64, is_key=True),
            ColumnDescriptor(name="value", type=LogicalType.STRING, is_nullable=True),
        ]
    )
    partitioning = PartitioningSpec(
        hash_rules=[HashPartitionRule(columns=["key"], num_buckets=4, seed=7)]
    )
    return schema, partitioning


def decimal_fixture_schema() -> tuple[TableSchema, PartitioningSpec]:
    """INT64 key plus a DECIMAL(9,2) column defaulting to 12345.67."""
    schema = TableSchema(
        columns=[
            ColumnDescriptor(name="key", type=LogicalType.INT64, is_key=True),
            ColumnDescriptor(
                name="amount",
                type=LogicalType.DECIMAL,
                is_nullable=True,
                default=Decimal("12345.67"),
                type_attributes=TypeAttributes(precision=9, scale=2),
            ),
        ]
    )
    partitioning = PartitioningSpec(
        hash_rules=[HashPartitionRule(columns=["key"], num_buckets=2, seed=0)]
    )
    return schema, partitioning
