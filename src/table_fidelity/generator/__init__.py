"""Constrained random schema and row generation.

Usage:
    from table_fidelity.generator import generate_schema, generate_rows

    rng = random.Random(seed)
    schema, partitioning = generate_schema(rng)
    rows = generate_rows(schema, 100, rng)
"""

from table_fidelity.generator.rows import (
    ensure_rng,
    generate_rows,
    random_row_count,
    random_value,
)
from table_fidelity.generator.tables import generate_schema, generate_table_name

__all__ = [
    "ensure_rng",
    "generate_rows",
    "generate_schema",
    "generate_table_name",
    "random_row_count",
    "random_value",
]
