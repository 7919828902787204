"""Random row data consistent with a table schema.

All randomness comes from an explicit ``random.Random`` passed by the
caller (or built from an ``int`` seed), so a failing run can be replayed
from its seed.

Usage:
    from table_fidelity.generator.rows import generate_rows

    rows = generate_rows(schema, 100, rng)
    for row in rows:
        await session.apply(row)
"""

import random
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from table_fidelity.errors import GenerationError
from table_fidelity.schema.models import ColumnDescriptor, RowInstance, TableSchema, TypeAttributes
from table_fidelity.schema.types import LogicalType, scaled_decimal
from table_fidelity.schema.values import INT_BITS, ValueKind, int_bounds, kind_of, to_float32

MAX_STRING_LENGTH = 100
MAX_RANDOM_ROWS = 200

# 1-in-N odds for null cells and for deferring to the column default.
NULL_ODDS = 10
DEFAULT_ODDS = 10


def ensure_rng(rng: random.Random | int | None) -> random.Random:
    """Return *rng* unchanged, or a new generator seeded with it."""
    if isinstance(rng, random.Random):
        return rng
    return random.Random(rng)


def _random_text(rng: random.Random) -> str:
    # Printable BMP code points below the surrogate block.
    return "".join(
        chr(rng.randint(0x20, 0xD7FF)) for _ in range(rng.randrange(MAX_STRING_LENGTH))
    )


def _random_decimal(rng: random.Random, attrs: TypeAttributes | None) -> Decimal:
    if attrs is None:
        raise GenerationError("Decimal value requested without type attributes")
    bound = 10**attrs.precision - 1
    return scaled_decimal(rng.randint(-bound, bound), attrs.scale)


_VALUE_DRAWS: dict[ValueKind, Callable[[random.Random, TypeAttributes | None], Any]] = {
    ValueKind.BOOL: lambda rng, _: rng.random() < 0.5,
    ValueKind.FLOAT: lambda rng, _: to_float32(rng.random()),
    ValueKind.DOUBLE: lambda rng, _: rng.random(),
    ValueKind.DECIMAL: _random_decimal,
    ValueKind.STRING: lambda rng, _: _random_text(rng),
    ValueKind.BINARY: lambda rng, _: rng.randbytes(rng.randrange(MAX_STRING_LENGTH)),
}
for _kind in INT_BITS:
    _VALUE_DRAWS[_kind] = lambda rng, _, _k=_kind: rng.randint(*int_bounds(_k))


def random_value(
    rng: random.Random,
    logical_type: LogicalType,
    type_attributes: TypeAttributes | None = None,
) -> Any:
    """Draw a value from the natural domain of *logical_type*.

    Integers and timestamps span their full signed width, floats are
    single-precision representable, decimals stay within the precision and
    scale of *type_attributes*, strings and byte strings have length
    ``[0, 100)``.

    Raises:
        GenerationError: If the type has no value draw.
    """
    kind = kind_of(logical_type)
    try:
        draw = _VALUE_DRAWS[kind]
    except KeyError:
        raise GenerationError(f"Unsupported type {logical_type!r}") from None
    return draw(rng, type_attributes)


def _random_cell(rng: random.Random, col: ColumnDescriptor) -> tuple[bool, Any]:
    """Return ``(present, value)`` for one cell."""
    if col.is_nullable and rng.randrange(NULL_ODDS) == 0:
        return True, None
    if col.default is not None and not col.is_key and rng.randrange(DEFAULT_ODDS) == 0:
        return False, None
    return True, random_value(rng, col.type, col.type_attributes)


def generate_rows(
    schema: TableSchema,
    row_count: int,
    rng: random.Random | int | None = None,
) -> list[RowInstance]:
    """Generate *row_count* rows for *schema*.

    Per column: nullable columns are null about 1 time in 10; otherwise a
    non-key column with a default is omitted about 1 time in 10 so the
    stored default applies; otherwise a random value is drawn.

    Args:
        schema: Table schema the rows must satisfy.
        row_count: Number of rows to produce.
        rng: Random generator or seed.

    Returns:
        List of row dicts keyed by column name.

    Raises:
        ValueError: If *row_count* is negative.
        GenerationError: If a column has an unsupported type.
    """
    if row_count < 0:
        raise ValueError(f"row_count must be >= 0, got {row_count}")
    rng = ensure_rng(rng)

    rows: list[RowInstance] = []
    for _ in range(row_count):
        row: RowInstance = {}
        for col in schema.columns:
            present, value = _random_cell(rng, col)
            if present:
                row[col.name] = value
        rows.append(row)
    return rows


def random_row_count(rng: random.Random) -> int:
    """Row count for a generated-data run: uniform in ``[0, 200]``."""
    return rng.randint(0, MAX_RANDOM_ROWS)
