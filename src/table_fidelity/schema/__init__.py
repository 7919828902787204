"""Column metadata, value kinds, schema models, and equivalence checks.

Usage:
    from table_fidelity.schema import TableSchema, ColumnDescriptor, LogicalType
    from table_fidelity.schema import schemas_equal, partitioning_equal
"""

from table_fidelity.schema.comparator import (
    columns_equal,
    compare_partitioning,
    compare_schemas,
    partitioning_equal,
    schemas_equal,
)
from table_fidelity.schema.models import (
    ColumnDescriptor,
    ColumnMismatch,
    HashPartitionRule,
    PartitioningComparison,
    PartitioningSpec,
    RangePartitionRule,
    RowInstance,
    SchemaComparison,
    TableHandle,
    TableSchema,
    TypeAttributes,
)
from table_fidelity.schema.types import (
    BLOCK_SIZES,
    KEY_TYPES,
    MAX_DECIMAL_PRECISION,
    CompressionAlgorithm,
    Encoding,
    LogicalType,
    valid_encodings,
)
from table_fidelity.schema.values import (
    ValueKind,
    check_value,
    decode_value,
    encode_value,
    values_equal,
)

__all__ = [
    "columns_equal",
    "compare_partitioning",
    "compare_schemas",
    "partitioning_equal",
    "schemas_equal",
    "ColumnDescriptor",
    "ColumnMismatch",
    "HashPartitionRule",
    "PartitioningComparison",
    "PartitioningSpec",
    "RangePartitionRule",
    "RowInstance",
    "SchemaComparison",
    "TableHandle",
    "TableSchema",
    "TypeAttributes",
    "BLOCK_SIZES",
    "KEY_TYPES",
    "MAX_DECIMAL_PRECISION",
    "CompressionAlgorithm",
    "Encoding",
    "LogicalType",
    "valid_encodings",
    "ValueKind",
    "check_value",
    "decode_value",
    "encode_value",
    "values_equal",
]
