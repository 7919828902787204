"""Tests for the schema, partitioning and row generators.

Property checks run over a range of seeds: every generated schema must be
accepted by the storage rules, every generated row must satisfy its
schema, and the same seed must reproduce the same output.
"""

import random
from decimal import Decimal

import pytest

from table_fidelity.errors import GenerationError
from table_fidelity.generator.rows import (
    MAX_RANDOM_ROWS,
    MAX_STRING_LENGTH,
    ensure_rng,
    generate_rows,
    random_row_count,
    random_value,
)
from table_fidelity.generator.tables import (
    MAX_COLUMNS,
    MAX_HASH_BUCKETS,
    MAX_RANGE_SPLITS,
    MIN_HASH_BUCKETS,
    generate_schema,
    generate_table_name,
)
from table_fidelity.schema.comparator import partitioning_equal, schemas_equal
from table_fidelity.schema.models import ColumnDescriptor, TableSchema, TypeAttributes
from table_fidelity.schema.types import (
    KEY_TYPES,
    LogicalType,
    decimal_min_value,
    valid_encodings,
)
from table_fidelity.schema.values import check_value

SEEDS = range(60)


class TestGenerateSchema:
    """Generated schemas honor every storage rule."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_schema_properties(self, seed: int) -> None:
        schema, _ = generate_schema(seed)

        assert 1 <= len(schema.columns) <= MAX_COLUMNS
        keys = schema.key_columns
        assert keys
        # Keys form a prefix of the column list
        assert schema.columns[: len(keys)] == keys

        for col in schema.columns:
            assert col.encoding in valid_encodings(col.type)
            if col.is_key:
                assert col.type in KEY_TYPES
                assert not col.is_nullable
                assert col.default is None
            if col.type is LogicalType.DECIMAL:
                attrs = col.type_attributes
                assert attrs is not None
                assert 1 <= attrs.precision <= 38
                assert 0 <= attrs.scale < attrs.precision
                if col.default is not None:
                    assert col.default == decimal_min_value(attrs.precision, attrs.scale)
            else:
                assert col.type_attributes is None
            assert col.name == f"{col.type.value}-{schema.columns.index(col)}"

    @pytest.mark.parametrize("seed", SEEDS)
    def test_partitioning_properties(self, seed: int) -> None:
        schema, partitioning = generate_schema(seed)
        keys = schema.key_columns

        partitioning.check_against(schema)
        assert 1 <= len(partitioning.hash_rules) <= min(len(keys), 3)
        for level, rule in enumerate(partitioning.hash_rules):
            assert rule.columns == [keys[level].name]
            assert MIN_HASH_BUCKETS <= rule.num_buckets <= MAX_HASH_BUCKETS
            assert -(2**31) <= rule.seed <= 2**31 - 1

        if partitioning.range_rule is not None:
            first_int64 = next(c for c in keys if c.type is LogicalType.INT64)
            assert partitioning.range_columns == [first_int64.name]
            splits = partitioning.range_rule.split_points
            assert len(splits) <= MAX_RANGE_SPLITS
            assert len(set(splits)) == len(splits)

    def test_range_rule_appears_for_some_seeds(self) -> None:
        with_range = [
            seed for seed in range(300) if generate_schema(seed)[1].range_rule is not None
        ]
        assert with_range

    @pytest.mark.parametrize("seed", [0, 1, 17, 1234])
    def test_same_seed_same_output(self, seed: int) -> None:
        schema_a, partitioning_a = generate_schema(seed)
        schema_b, partitioning_b = generate_schema(random.Random(seed))
        assert schemas_equal(schema_a, schema_b)
        assert partitioning_equal(partitioning_a, partitioning_b)

    def test_max_columns_one(self) -> None:
        for seed in range(20):
            schema, partitioning = generate_schema(seed, max_columns=1)
            assert len(schema.columns) == 1
            assert schema.columns[0].is_key
            assert len(partitioning.hash_rules) == 1

    def test_max_columns_invalid(self) -> None:
        with pytest.raises(ValueError):
            generate_schema(0, max_columns=0)

    def test_table_name_format(self) -> None:
        name = generate_table_name()
        prefix, millis, suffix = name.split("-")
        assert prefix == "random"
        assert millis.isdigit()
        assert len(suffix) == 8
        assert generate_table_name() != name


class TestRandomValue:
    """Per-type value draws."""

    @pytest.mark.parametrize(
        "logical_type", [t for t in LogicalType if t is not LogicalType.DECIMAL]
    )
    def test_values_in_domain(self, logical_type: LogicalType) -> None:
        rng = random.Random(5)
        for _ in range(200):
            check_value(logical_type, random_value(rng, logical_type))

    def test_decimal_within_precision(self) -> None:
        rng = random.Random(5)
        attrs = TypeAttributes(precision=4, scale=2)
        for _ in range(200):
            value = random_value(rng, LogicalType.DECIMAL, attrs)
            assert isinstance(value, Decimal)
            check_value(LogicalType.DECIMAL, value, precision=4, scale=2)

    def test_decimal_without_attributes(self) -> None:
        with pytest.raises(GenerationError):
            random_value(random.Random(0), LogicalType.DECIMAL)

    def test_unknown_type(self) -> None:
        with pytest.raises(GenerationError):
            random_value(random.Random(0), "bogus")  # type: ignore[arg-type]

    def test_string_length_bound(self) -> None:
        rng = random.Random(9)
        for _ in range(200):
            assert len(random_value(rng, LogicalType.STRING)) < MAX_STRING_LENGTH
            assert len(random_value(rng, LogicalType.BINARY)) < MAX_STRING_LENGTH

    def test_ints_reach_beyond_narrow_ranges(self) -> None:
        rng = random.Random(3)
        values = [random_value(rng, LogicalType.INT64) for _ in range(50)]
        assert any(abs(v) > 2**32 for v in values)


class TestGenerateRows:
    """Generated rows satisfy their schema."""

    @pytest.mark.parametrize("seed", range(20))
    def test_rows_satisfy_generated_schema(self, seed: int) -> None:
        rng = random.Random(seed)
        schema, _ = generate_schema(rng)
        rows = generate_rows(schema, 50, rng)

        assert len(rows) == 50
        for row in rows:
            for col in schema.columns:
                if col.name not in row:
                    # Omission defers to a stored default
                    assert not col.is_key
                    assert col.default is not None
                    continue
                value = row[col.name]
                if value is None:
                    assert col.is_nullable
                    continue
                attrs = col.type_attributes
                check_value(
                    col.type,
                    value,
                    precision=attrs.precision if attrs else None,
                    scale=attrs.scale if attrs else None,
                )

    def test_null_rate(self) -> None:
        schema = TableSchema(
            columns=[
                ColumnDescriptor(name="id", type=LogicalType.INT64, is_key=True),
                ColumnDescriptor(name="v", type=LogicalType.INT32, is_nullable=True),
            ]
        )
        rows = generate_rows(schema, 5000, random.Random(11))
        nulls = sum(1 for row in rows if row["v"] is None)
        assert 350 < nulls < 650
        assert all(row["id"] is not None for row in rows)

    def test_omission_only_with_default(self) -> None:
        schema = TableSchema(
            columns=[
                ColumnDescriptor(name="id", type=LogicalType.INT64, is_key=True),
                ColumnDescriptor(name="plain", type=LogicalType.STRING),
                ColumnDescriptor(name="with_default", type=LogicalType.STRING, default="d"),
            ]
        )
        rows = generate_rows(schema, 2000, random.Random(2))
        assert all("plain" in row and "id" in row for row in rows)
        omitted = sum(1 for row in rows if "with_default" not in row)
        assert 100 < omitted < 300

    def test_zero_rows(self) -> None:
        schema, _ = generate_schema(0)
        assert generate_rows(schema, 0, 0) == []

    def test_negative_row_count(self) -> None:
        schema, _ = generate_schema(0)
        with pytest.raises(ValueError):
            generate_rows(schema, -1, 0)

    def test_deterministic(self) -> None:
        schema, _ = generate_schema(4)
        assert generate_rows(schema, 10, 99) == generate_rows(schema, 10, 99)

    def test_unsupported_column_type(self) -> None:
        col = ColumnDescriptor(name="v", type=LogicalType.INT32).model_copy(
            update={"type": "bogus"}
        )
        schema = TableSchema.model_construct(columns=[col])
        with pytest.raises(GenerationError):
            generate_rows(schema, 1, 0)


class TestHelpers:
    """Seed and row count helpers."""

    def test_ensure_rng(self) -> None:
        rng = random.Random(1)
        assert ensure_rng(rng) is rng
        assert ensure_rng(5).random() == random.Random(5).random()

    def test_random_row_count_bounds(self) -> None:
        rng = random.Random(0)
        counts = [random_row_count(rng) for _ in range(500)]
        assert all(0 <= c <= MAX_RANDOM_ROWS for c in counts)
