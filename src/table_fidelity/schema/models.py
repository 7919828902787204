"""Pydantic models for table schemas, partitioning, and verification verdicts.

This module contains:
- Column/table models: TypeAttributes, ColumnDescriptor, TableSchema
- Partitioning models: HashPartitionRule, RangePartitionRule, PartitioningSpec
- Cluster handle: TableHandle
- Verdict models: ColumnMismatch, SchemaComparison, PartitioningComparison

Rows are plain ``dict[str, Any]`` keyed by column name (``RowInstance``).
A key mapped to ``None`` is an explicit null; a missing key means "use the
column default".
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from table_fidelity.schema.types import (
    BLOCK_SIZES,
    MAX_DECIMAL_PRECISION,
    CompressionAlgorithm,
    Encoding,
    LogicalType,
    valid_encodings,
)
from table_fidelity.schema.values import check_value

RowInstance = dict[str, Any]


# ============================================================================
# Column and Table Models
# ============================================================================


class TypeAttributes(BaseModel):
    """Precision/scale of a fixed-point decimal column.

    Example:
        >>> TypeAttributes(precision=9, scale=2).scale
        2
    """

    precision: int = Field(ge=1, le=MAX_DECIMAL_PRECISION)
    scale: int = Field(ge=0)

    @model_validator(mode="after")
    def _scale_within_precision(self) -> "TypeAttributes":
        if self.scale > self.precision:
            raise ValueError(
                f"scale {self.scale} exceeds precision {self.precision}"
            )
        return self


class ColumnDescriptor(BaseModel):
    """Schema for a single column.

    Construction enforces the storage engine's per-column rules: the
    encoding must suit the type, key columns are non-nullable and have no
    default, decimal columns carry type attributes (and only they do), and
    any default belongs to the column's value domain.

    Example:
        >>> col = ColumnDescriptor(name="id", type=LogicalType.INT64, is_key=True)
        >>> col.is_nullable
        False
    """

    name: str
    type: LogicalType
    is_key: bool = False
    is_nullable: bool = False
    compression: CompressionAlgorithm = CompressionAlgorithm.DEFAULT
    desired_block_size: int = 0
    encoding: Encoding = Encoding.AUTO
    default: Any = None
    type_attributes: TypeAttributes | None = None

    @model_validator(mode="after")
    def _check_storage_rules(self) -> "ColumnDescriptor":
        if self.encoding not in valid_encodings(self.type):
            raise ValueError(
                f"Encoding {self.encoding.value} is not valid for "
                f"{self.type.value} column '{self.name}'"
            )
        if self.desired_block_size < 0:
            raise ValueError(f"Negative block size on column '{self.name}'")
        if self.is_key and self.is_nullable:
            raise ValueError(f"Key column '{self.name}' cannot be nullable")
        if self.is_key and self.default is not None:
            raise ValueError(f"Key column '{self.name}' cannot have a default")

        is_decimal = self.type is LogicalType.DECIMAL
        if is_decimal and self.type_attributes is None:
            raise ValueError(f"Decimal column '{self.name}' needs type attributes")
        if not is_decimal and self.type_attributes is not None:
            raise ValueError(
                f"Only decimal columns carry type attributes ('{self.name}')"
            )

        if self.default is not None:
            attrs = self.type_attributes
            check_value(
                self.type,
                self.default,
                precision=attrs.precision if attrs else None,
                scale=attrs.scale if attrs else None,
            )
        return self

    @property
    def scale(self) -> int | None:
        """Decimal scale, or ``None`` for non-decimal columns."""
        return self.type_attributes.scale if self.type_attributes else None


class TableSchema(BaseModel):
    """Ordered column list of a table. Order defines row layout."""

    columns: list[ColumnDescriptor] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_keys_and_names(self) -> "TableSchema":
        if not any(c.is_key for c in self.columns):
            raise ValueError("Table schema needs at least one key column")
        names = [c.name for c in self.columns]
        if len(set(names)) != len(names):
            raise ValueError("Duplicate column names in table schema")
        return self

    @property
    def key_columns(self) -> list[ColumnDescriptor]:
        """Key columns in schema order."""
        return [c for c in self.columns if c.is_key]

    def column(self, name: str) -> ColumnDescriptor:
        """Look up a column by name.

        Raises:
            KeyError: If no column has that name.
        """
        for col in self.columns:
            if col.name == name:
                return col
        raise KeyError(name)


# ============================================================================
# Partitioning Models
# ============================================================================


MAX_HASH_LEVELS = 3


class HashPartitionRule(BaseModel):
    """Hash buckets over one or more key columns."""

    columns: list[str] = Field(min_length=1)
    num_buckets: int = Field(ge=2)
    seed: int = Field(ge=-(2**31), le=2**31 - 1)


class RangePartitionRule(BaseModel):
    """Range partitioning over key columns with explicit split points."""

    columns: list[str] = Field(min_length=1)
    split_points: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def _distinct_splits(self) -> "RangePartitionRule":
        if len(set(self.split_points)) != len(self.split_points):
            raise ValueError("Range split points must be distinct")
        return self


class PartitioningSpec(BaseModel):
    """Hash levels plus an optional range rule.

    Example:
        >>> spec = PartitioningSpec(
        ...     hash_rules=[HashPartitionRule(columns=["id"], num_buckets=4, seed=7)]
        ... )
        >>> spec.range_columns
        []
    """

    hash_rules: list[HashPartitionRule] = Field(
        default_factory=list, max_length=MAX_HASH_LEVELS
    )
    range_rule: RangePartitionRule | None = None

    @property
    def range_columns(self) -> list[str]:
        """Range partition columns; empty when there is no range rule."""
        return list(self.range_rule.columns) if self.range_rule else []

    def check_against(self, schema: TableSchema) -> None:
        """Verify every rule references key columns of *schema*.

        Range partitioning must target ``int64`` key columns.

        Raises:
            ValueError: On the first violated rule.
        """
        keys = {c.name: c for c in schema.key_columns}
        for level, rule in enumerate(self.hash_rules):
            for name in rule.columns:
                if name not in keys:
                    raise ValueError(
                        f"Hash level {level} references non-key column '{name}'"
                    )
        if self.range_rule is not None:
            for name in self.range_rule.columns:
                if name not in keys:
                    raise ValueError(
                        f"Range rule references non-key column '{name}'"
                    )
                if keys[name].type is not LogicalType.INT64:
                    raise ValueError(
                        f"Range column '{name}' must be int64, "
                        f"got {keys[name].type.value}"
                    )


# ============================================================================
# Cluster Handle
# ============================================================================


class TableHandle(BaseModel):
    """Opaque reference to a table owned by the storage cluster."""

    name: str
    table_id: str


# ============================================================================
# Verdict Models
# ============================================================================


class ColumnMismatch(BaseModel):
    """One field that differs between two columns or partition rules."""

    index: int
    column: str
    field: str
    before: str = ""
    after: str = ""


class SchemaComparison(BaseModel):
    """Structured result of comparing two table schemas.

    Example:
        >>> SchemaComparison(equal=True).format_report()
        'Schemas match'
    """

    equal: bool
    column_count_before: int = 0
    column_count_after: int = 0
    mismatches: list[ColumnMismatch] = Field(default_factory=list)

    @property
    def first_mismatch_index(self) -> int | None:
        """Ordinal of the first differing column, if any."""
        return self.mismatches[0].index if self.mismatches else None

    def format_report(self) -> str:
        """Format the comparison as a human-readable report."""
        if self.equal:
            return "Schemas match"

        lines = ["Schema mismatch:"]
        if self.column_count_before != self.column_count_after:
            lines.append(
                f"  Column count: {self.column_count_before} != "
                f"{self.column_count_after}"
            )
        for diff in self.mismatches:
            lines.append(
                f"  - [{diff.index}] {diff.column}.{diff.field}: "
                f"{diff.before} != {diff.after}"
            )
        return "\n".join(lines)


class PartitioningComparison(BaseModel):
    """Structured result of comparing two partitioning specs."""

    equal: bool
    mismatches: list[ColumnMismatch] = Field(default_factory=list)

    def format_report(self) -> str:
        """Format the comparison as a human-readable report."""
        if self.equal:
            return "Partitioning matches"

        lines = ["Partitioning mismatch:"]
        for diff in self.mismatches:
            lines.append(
                f"  - {diff.column}[{diff.index}].{diff.field}: "
                f"{diff.before} != {diff.after}"
            )
        return "\n".join(lines)
