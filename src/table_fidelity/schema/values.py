"""Value kinds: per-kind checking, equality, and JSON encoding of column values.

Column defaults and row cells are plain Python objects (``bool``, ``int``,
``float``, ``Decimal``, ``str``, ``bytes``). Generic ``==`` is not a reliable
oracle across those: bytes-like objects of different classes, float bit
patterns (``NaN``, ``-0.0``), and decimals at different exponents all need an
explicit rule. Each logical type maps to exactly one ``ValueKind`` and each
kind has its own check/equality/encoding function.

Usage:
    from table_fidelity.schema.values import check_value, values_equal

    check_value(LogicalType.BINARY, b"abc")
    values_equal(LogicalType.BINARY, b"abc", bytearray(b"abc"))  # True
"""

import base64
import math
import struct
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from table_fidelity.errors import GenerationError
from table_fidelity.schema.types import LogicalType, unscaled_value


class ValueKind(str, Enum):
    """Runtime representation families for column values."""

    BOOL = "bool"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    STRING = "string"
    BINARY = "binary"


KIND_BY_TYPE: dict[LogicalType, ValueKind] = {
    LogicalType.BOOL: ValueKind.BOOL,
    LogicalType.INT8: ValueKind.INT8,
    LogicalType.INT16: ValueKind.INT16,
    LogicalType.INT32: ValueKind.INT32,
    LogicalType.INT64: ValueKind.INT64,
    LogicalType.UNIXTIME_MICROS: ValueKind.INT64,
    LogicalType.FLOAT: ValueKind.FLOAT,
    LogicalType.DOUBLE: ValueKind.DOUBLE,
    LogicalType.DECIMAL: ValueKind.DECIMAL,
    LogicalType.STRING: ValueKind.STRING,
    LogicalType.BINARY: ValueKind.BINARY,
}

INT_BITS: dict[ValueKind, int] = {
    ValueKind.INT8: 8,
    ValueKind.INT16: 16,
    ValueKind.INT32: 32,
    ValueKind.INT64: 64,
}


def kind_of(logical_type: LogicalType) -> ValueKind:
    """Return the value kind for *logical_type*.

    Raises:
        GenerationError: If the type is not in ``KIND_BY_TYPE``.
    """
    try:
        return KIND_BY_TYPE[logical_type]
    except KeyError:
        raise GenerationError(f"Unsupported type {logical_type!r}") from None


def int_bounds(kind: ValueKind) -> tuple[int, int]:
    """Inclusive signed range for an integer kind."""
    bits = INT_BITS[kind]
    return -(2 ** (bits - 1)), 2 ** (bits - 1) - 1


def to_float32(value: float) -> float:
    """Round *value* to the nearest IEEE single-precision float."""
    return struct.unpack("<f", struct.pack("<f", value))[0]


# ============================================================================
# Type checks
# ============================================================================


def check_value(
    logical_type: LogicalType,
    value: Any,
    precision: int | None = None,
    scale: int | None = None,
) -> None:
    """Validate that *value* belongs to the domain of *logical_type*.

    ``precision``/``scale`` are required for decimals.

    Raises:
        ValueError: If the value has the wrong Python type or is out of range.
        GenerationError: If the type is unknown.
    """
    kind = kind_of(logical_type)

    if kind is ValueKind.BOOL:
        ok = isinstance(value, bool)
    elif kind in INT_BITS:
        low, high = int_bounds(kind)
        ok = isinstance(value, int) and not isinstance(value, bool) and low <= value <= high
    elif kind is ValueKind.FLOAT:
        ok = isinstance(value, float)
        if ok and not (math.isnan(value) or math.isinf(value)):
            try:
                ok = to_float32(value) == value
            except OverflowError:
                # Finite but beyond single-precision range.
                ok = False
    elif kind is ValueKind.DOUBLE:
        ok = isinstance(value, float)
    elif kind is ValueKind.DECIMAL:
        if precision is None or scale is None:
            raise ValueError("Decimal values need precision and scale")
        unscaled = unscaled_value(value, scale) if isinstance(value, Decimal) else None
        ok = unscaled is not None and abs(unscaled) < 10**precision
    elif kind is ValueKind.STRING:
        ok = isinstance(value, str)
    else:
        ok = isinstance(value, (bytes, bytearray, memoryview))

    if not ok:
        raise ValueError(
            f"Value {value!r} is not a valid {logical_type.value} value"
        )


# ============================================================================
# Equality
# ============================================================================


def _float_bits(value: float) -> bytes:
    return struct.pack("<d", value)


def values_equal(
    logical_type: LogicalType,
    before: Any,
    after: Any,
    scale: int | None = None,
) -> bool:
    """Compare two values of *logical_type* using the kind's equality rule.

    ``None`` only equals ``None``. Binary values compare element-wise after
    normalising to ``bytes``; floats compare by bit pattern; decimals compare
    as scaled integers at *scale* (or exactly, when *scale* is unknown).

    Examples:
        >>> values_equal(LogicalType.BINARY, b"ab", bytearray(b"ab"))
        True
        >>> values_equal(LogicalType.DOUBLE, float("nan"), float("nan"))
        True
        >>> values_equal(LogicalType.DOUBLE, 0.0, -0.0)
        False
    """
    if before is None or after is None:
        return before is None and after is None

    kind = kind_of(logical_type)

    if kind is ValueKind.BINARY:
        if not isinstance(before, (bytes, bytearray, memoryview)):
            return False
        if not isinstance(after, (bytes, bytearray, memoryview)):
            return False
        return bytes(before) == bytes(after)

    if kind in (ValueKind.FLOAT, ValueKind.DOUBLE):
        if not isinstance(before, float) or not isinstance(after, float):
            return False
        return _float_bits(before) == _float_bits(after)

    if kind is ValueKind.DECIMAL:
        if not isinstance(before, Decimal) or not isinstance(after, Decimal):
            return False
        if scale is None:
            return before.as_tuple() == after.as_tuple()
        left = unscaled_value(before, scale)
        return left is not None and left == unscaled_value(after, scale)

    if kind is ValueKind.BOOL:
        return type(before) is bool and type(after) is bool and before == after

    if kind in INT_BITS:
        if isinstance(before, bool) or isinstance(after, bool):
            return False
        return isinstance(before, int) and isinstance(after, int) and before == after

    return isinstance(before, str) and isinstance(after, str) and before == after


# ============================================================================
# JSON encoding
# ============================================================================


def encode_value(logical_type: LogicalType, value: Any) -> Any:
    """Encode *value* as a JSON-safe object that ``decode_value`` inverts exactly."""
    if value is None:
        return None
    kind = kind_of(logical_type)
    if kind is ValueKind.BINARY:
        return base64.b64encode(bytes(value)).decode("ascii")
    if kind in (ValueKind.FLOAT, ValueKind.DOUBLE):
        return float.hex(value)
    if kind is ValueKind.DECIMAL:
        return str(value)
    return value


def decode_value(logical_type: LogicalType, encoded: Any) -> Any:
    """Inverse of ``encode_value``.

    Raises:
        ValueError: If *encoded* is not a valid encoding for the type.
    """
    if encoded is None:
        return None
    kind = kind_of(logical_type)
    if kind is ValueKind.BINARY:
        return base64.b64decode(encoded.encode("ascii"), validate=True)
    if kind in (ValueKind.FLOAT, ValueKind.DOUBLE):
        return float.fromhex(encoded)
    if kind is ValueKind.DECIMAL:
        try:
            return Decimal(encoded)
        except InvalidOperation:
            raise ValueError(f"Invalid decimal literal {encoded!r}") from None
    return encoded
