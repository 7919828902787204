"""Structural equivalence of schemas, columns, and partitioning.

Pure logic -- no I/O, no cluster access. Given two snapshots (typically a
source table and its restored copy) it decides whether they are
structurally identical. Column order is significant. Default values go
through ``values_equal`` so byte sequences compare by content and floats by
bit pattern.

Usage:
    from table_fidelity.schema.comparator import compare_schemas, schemas_equal

    if not schemas_equal(source_schema, restored_schema):
        print(compare_schemas(source_schema, restored_schema).format_report())
"""

import logging

from table_fidelity.schema.models import (
    ColumnDescriptor,
    ColumnMismatch,
    HashPartitionRule,
    PartitioningComparison,
    PartitioningSpec,
    SchemaComparison,
    TableSchema,
)
from table_fidelity.schema.values import values_equal

logger = logging.getLogger(__name__)

# Plain fields compared with ``==``; ``default`` is handled separately.
_COLUMN_FIELDS = (
    "name",
    "type",
    "is_key",
    "is_nullable",
    "desired_block_size",
    "encoding",
    "compression",
    "type_attributes",
)

_HASH_RULE_FIELDS = ("columns", "num_buckets", "seed")


def _column_diffs(
    index: int, before: ColumnDescriptor, after: ColumnDescriptor
) -> list[ColumnMismatch]:
    if before is after:
        return []

    diffs: list[ColumnMismatch] = []
    for field in _COLUMN_FIELDS:
        left = getattr(before, field)
        right = getattr(after, field)
        if left != right:
            diffs.append(
                ColumnMismatch(
                    index=index,
                    column=before.name,
                    field=field,
                    before=repr(left),
                    after=repr(right),
                )
            )

    # Compare defaults under the source column's type; a type change is
    # already reported above.
    if not values_equal(before.type, before.default, after.default, scale=before.scale):
        diffs.append(
            ColumnMismatch(
                index=index,
                column=before.name,
                field="default",
                before=repr(before.default),
                after=repr(after.default),
            )
        )
    return diffs


def columns_equal(before: ColumnDescriptor, after: ColumnDescriptor) -> bool:
    """Return ``True`` if every descriptor field of the two columns matches.

    Example:
        >>> a = ColumnDescriptor(name="b", type=LogicalType.BINARY, default=b"x")
        >>> b = ColumnDescriptor(name="b", type=LogicalType.BINARY, default=bytearray(b"x"))
        >>> columns_equal(a, b)
        True
    """
    return not _column_diffs(0, before, after)


def compare_schemas(before: TableSchema, after: TableSchema) -> SchemaComparison:
    """Compare two schemas column by column.

    Returns:
        ``SchemaComparison`` listing every differing field of every column
        pair at the same ordinal. A column-count difference makes the
        schemas unequal; the overlapping prefix is still diffed for
        diagnostics.
    """
    if before is after:
        return SchemaComparison(
            equal=True,
            column_count_before=len(before.columns),
            column_count_after=len(after.columns),
        )

    mismatches: list[ColumnMismatch] = []
    for index, (left, right) in enumerate(zip(before.columns, after.columns)):
        mismatches.extend(_column_diffs(index, left, right))

    same_count = len(before.columns) == len(after.columns)
    result = SchemaComparison(
        equal=same_count and not mismatches,
        column_count_before=len(before.columns),
        column_count_after=len(after.columns),
        mismatches=mismatches,
    )
    if not result.equal:
        logger.debug(
            "Schema mismatch at column %s (%d differing fields, %d vs %d columns)",
            result.first_mismatch_index,
            len(mismatches),
            len(before.columns),
            len(after.columns),
        )
    return result


def schemas_equal(before: TableSchema, after: TableSchema) -> bool:
    """Return ``True`` if both schemas have the same columns in the same order."""
    return compare_schemas(before, after).equal


def _hash_rule_diffs(
    level: int, before: HashPartitionRule, after: HashPartitionRule
) -> list[ColumnMismatch]:
    diffs: list[ColumnMismatch] = []
    for field in _HASH_RULE_FIELDS:
        left = getattr(before, field)
        right = getattr(after, field)
        if left != right:
            diffs.append(
                ColumnMismatch(
                    index=level,
                    column="hash",
                    field=field,
                    before=repr(left),
                    after=repr(right),
                )
            )
    return diffs


def compare_partitioning(
    before: PartitioningSpec, after: PartitioningSpec
) -> PartitioningComparison:
    """Compare hash levels pairwise and the range column lists.

    Split points are not part of the verdict: only the range column list
    is compared, and an absent range rule equals another absent one.
    """
    if before is after:
        return PartitioningComparison(equal=True)

    mismatches: list[ColumnMismatch] = []
    if len(before.hash_rules) != len(after.hash_rules):
        mismatches.append(
            ColumnMismatch(
                index=0,
                column="hash",
                field="levels",
                before=str(len(before.hash_rules)),
                after=str(len(after.hash_rules)),
            )
        )
    else:
        for level, (left, right) in enumerate(zip(before.hash_rules, after.hash_rules)):
            mismatches.extend(_hash_rule_diffs(level, left, right))

    if before.range_columns != after.range_columns:
        mismatches.append(
            ColumnMismatch(
                index=0,
                column="range",
                field="columns",
                before=repr(before.range_columns),
                after=repr(after.range_columns),
            )
        )

    result = PartitioningComparison(equal=not mismatches, mismatches=mismatches)
    if not result.equal:
        first = mismatches[0]
        logger.debug(
            "Partitioning mismatch: %s[%d].%s", first.column, first.index, first.field
        )
    return result


def partitioning_equal(before: PartitioningSpec, after: PartitioningSpec) -> bool:
    """Return ``True`` if hash levels and range columns match."""
    return compare_partitioning(before, after).equal
