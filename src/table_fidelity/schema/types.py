"""Closed enumerations for the columnar store's column metadata.

Every per-type dispatch table in the package is keyed by ``LogicalType``.
Lookups go through helpers that raise ``GenerationError`` on a miss, so a
type added to the enum without a table entry fails loudly on first use (and
the test suite checks coverage of every table up front).
"""

from decimal import Decimal
from enum import Enum

from table_fidelity.errors import GenerationError


class LogicalType(str, Enum):
    """Logical column types supported by the storage engine."""

    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    BINARY = "binary"
    STRING = "string"
    BOOL = "bool"
    FLOAT = "float"
    DOUBLE = "double"
    UNIXTIME_MICROS = "unixtime_micros"
    DECIMAL = "decimal"


class Encoding(str, Enum):
    """On-disk value encodings."""

    AUTO = "auto"
    PLAIN = "plain"
    PREFIX = "prefix"
    GROUP_VARINT = "group_varint"
    RLE = "rle"
    DICT = "dict"
    BIT_SHUFFLE = "bit_shuffle"


class CompressionAlgorithm(str, Enum):
    """Block compression codecs (``unknown`` is never a valid choice)."""

    DEFAULT = "default"
    NONE = "none"
    SNAPPY = "snappy"
    LZ4 = "lz4"
    ZLIB = "zlib"


# Default, min, middle, max.
BLOCK_SIZES: tuple[int, ...] = (0, 4096, 524288, 1048576)

MAX_DECIMAL_PRECISION = 38

# Types that cannot order rows, so never serve as key or partition columns.
UNORDERABLE_TYPES: frozenset[LogicalType] = frozenset(
    {LogicalType.BOOL, LogicalType.FLOAT, LogicalType.DOUBLE}
)

KEY_TYPES: tuple[LogicalType, ...] = tuple(
    t for t in LogicalType if t not in UNORDERABLE_TYPES
)

_INTEGER_ENCODINGS = (Encoding.AUTO, Encoding.PLAIN, Encoding.BIT_SHUFFLE, Encoding.RLE)
_FLOATING_ENCODINGS = (Encoding.AUTO, Encoding.PLAIN, Encoding.BIT_SHUFFLE)
_BINARY_ENCODINGS = (Encoding.AUTO, Encoding.PLAIN, Encoding.PREFIX, Encoding.DICT)
_BOOL_ENCODINGS = (Encoding.AUTO, Encoding.PLAIN, Encoding.RLE)

VALID_ENCODINGS: dict[LogicalType, tuple[Encoding, ...]] = {
    LogicalType.INT8: _INTEGER_ENCODINGS,
    LogicalType.INT16: _INTEGER_ENCODINGS,
    LogicalType.INT32: _INTEGER_ENCODINGS,
    LogicalType.INT64: _INTEGER_ENCODINGS,
    LogicalType.UNIXTIME_MICROS: _INTEGER_ENCODINGS,
    LogicalType.FLOAT: _FLOATING_ENCODINGS,
    LogicalType.DOUBLE: _FLOATING_ENCODINGS,
    LogicalType.DECIMAL: _FLOATING_ENCODINGS,
    LogicalType.STRING: _BINARY_ENCODINGS,
    LogicalType.BINARY: _BINARY_ENCODINGS,
    LogicalType.BOOL: _BOOL_ENCODINGS,
}


def valid_encodings(logical_type: LogicalType) -> tuple[Encoding, ...]:
    """Return the encodings the storage engine accepts for *logical_type*.

    Raises:
        GenerationError: If the type has no entry in ``VALID_ENCODINGS``.

    Example:
        >>> valid_encodings(LogicalType.BOOL)
        (<Encoding.AUTO: 'auto'>, <Encoding.PLAIN: 'plain'>, <Encoding.RLE: 'rle'>)
    """
    try:
        return VALID_ENCODINGS[logical_type]
    except KeyError:
        raise GenerationError(f"Unsupported type {logical_type!r}") from None


# ============================================================================
# Decimal bounds
# ============================================================================


def scaled_decimal(unscaled: int, scale: int) -> Decimal:
    """Build ``unscaled * 10**-scale`` exactly, independent of the context precision.

    Example:
        >>> scaled_decimal(1234567, 2)
        Decimal('12345.67')
    """
    sign = 1 if unscaled < 0 else 0
    digits = tuple(int(d) for d in str(abs(unscaled)))
    return Decimal((sign, digits, -scale))


def unscaled_value(value: Decimal, scale: int) -> int | None:
    """Return *value* as an integer count of ``10**-scale`` units.

    Returns ``None`` when *value* is not finite or carries non-zero digits
    beyond *scale*.
    """
    if not value.is_finite():
        return None
    sign, digits, exponent = value.as_tuple()
    magnitude = int("".join(str(d) for d in digits) or "0")
    shift = exponent + scale
    if shift >= 0:
        magnitude *= 10**shift
    else:
        divisor = 10**-shift
        if magnitude % divisor:
            return None
        magnitude //= divisor
    return -magnitude if sign else magnitude


def decimal_max_value(precision: int, scale: int) -> Decimal:
    """Largest value representable at *precision* / *scale*.

    Example:
        >>> decimal_max_value(9, 2)
        Decimal('9999999.99')
    """
    return scaled_decimal(10**precision - 1, scale)


def decimal_min_value(precision: int, scale: int) -> Decimal:
    """Smallest (most negative) value representable at *precision* / *scale*."""
    return scaled_decimal(-(10**precision - 1), scale)
