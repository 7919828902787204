"""Tests for the in-process cluster and its mutation sessions."""

from decimal import Decimal

import pytest

from table_fidelity.adapters.memory import InMemoryCluster
from table_fidelity.errors import ExternalOperationError
from table_fidelity.fixtures import decimal_fixture_schema, fixture_schema
from table_fidelity.schema.comparator import partitioning_equal, schemas_equal
from table_fidelity.schema.models import (
    ColumnDescriptor,
    PartitioningSpec,
    RangePartitionRule,
    TableHandle,
    TableSchema,
)
from table_fidelity.schema.types import LogicalType


@pytest.fixture
def cluster() -> InMemoryCluster:
    return InMemoryCluster()


class TestCreateTable:
    """DDL validation and read-back."""

    @pytest.mark.asyncio
    async def test_create_and_read_back(self, cluster: InMemoryCluster) -> None:
        schema, partitioning = fixture_schema()
        handle = await cluster.create_table("t", schema, partitioning, 3)

        assert handle.name == "t"
        assert cluster.table_names() == ["t"]
        assert schemas_equal(schema, await cluster.read_schema(handle))
        assert partitioning_equal(partitioning, await cluster.read_partitioning(handle))
        assert await cluster.read_replica_count(handle) == 3
        assert await cluster.read_all_rows(handle) == []

    @pytest.mark.asyncio
    async def test_open_table(self, cluster: InMemoryCluster) -> None:
        schema, partitioning = fixture_schema()
        created = await cluster.create_table("t", schema, partitioning, 1)
        opened = await cluster.open_table("t")
        assert opened == created

    @pytest.mark.asyncio
    async def test_open_missing_table(self, cluster: InMemoryCluster) -> None:
        with pytest.raises(ExternalOperationError, match="does not exist"):
            await cluster.open_table("missing")

    @pytest.mark.asyncio
    async def test_duplicate_name(self, cluster: InMemoryCluster) -> None:
        schema, partitioning = fixture_schema()
        await cluster.create_table("t", schema, partitioning, 1)
        with pytest.raises(ExternalOperationError, match="already exists"):
            await cluster.create_table("t", schema, partitioning, 1)

    @pytest.mark.asyncio
    async def test_invalid_replica_count(self, cluster: InMemoryCluster) -> None:
        schema, partitioning = fixture_schema()
        with pytest.raises(ExternalOperationError):
            await cluster.create_table("t", schema, partitioning, 0)

    @pytest.mark.asyncio
    async def test_invalid_partitioning(self, cluster: InMemoryCluster) -> None:
        schema, _ = fixture_schema()
        bad = PartitioningSpec(range_rule=RangePartitionRule(columns=["value"]))
        with pytest.raises(ExternalOperationError, match="Invalid partitioning"):
            await cluster.create_table("t", schema, bad, 1)

    @pytest.mark.asyncio
    async def test_read_returns_copies(self, cluster: InMemoryCluster) -> None:
        schema, partitioning = fixture_schema()
        handle = await cluster.create_table("t", schema, partitioning, 1)
        first = await cluster.read_schema(handle)
        first.columns.clear()
        assert len((await cluster.read_schema(handle)).columns) == 2

    def test_default_master_addresses(self) -> None:
        assert InMemoryCluster().master_addresses == ["127.0.0.1:7051"]
        assert InMemoryCluster(["a:1", "b:2"]).master_addresses == ["a:1", "b:2"]


class TestSession:
    """Buffered writes and write-time validation."""

    @pytest.mark.asyncio
    async def test_rows_visible_after_flush(self, cluster: InMemoryCluster) -> None:
        schema, partitioning = fixture_schema()
        handle = await cluster.create_table("t", schema, partitioning, 1)
        session = cluster.new_session(handle)

        await session.apply({"key": 1, "value": "a"})
        await session.apply({"key": 2, "value": None})
        assert session.pending_count == 2
        assert await cluster.read_all_rows(handle) == []

        await session.flush()
        assert session.pending_count == 0
        rows = await cluster.read_all_rows(handle)
        assert sorted(r["key"] for r in rows) == [1, 2]

    @pytest.mark.asyncio
    async def test_upsert_by_key(self, cluster: InMemoryCluster) -> None:
        schema, partitioning = fixture_schema()
        handle = await cluster.create_table("t", schema, partitioning, 1)
        session = cluster.new_session(handle)
        await session.apply({"key": 1, "value": "a"})
        await session.apply({"key": 1, "value": "b"})
        await session.close()

        assert await cluster.read_all_rows(handle) == [{"key": 1, "value": "b"}]

    @pytest.mark.asyncio
    async def test_close_flushes_and_blocks_apply(self, cluster: InMemoryCluster) -> None:
        schema, partitioning = fixture_schema()
        handle = await cluster.create_table("t", schema, partitioning, 1)
        session = cluster.new_session(handle)
        await session.apply({"key": 1})
        await session.close()

        assert len(await cluster.read_all_rows(handle)) == 1
        with pytest.raises(ExternalOperationError, match="closed"):
            await session.apply({"key": 2})

    @pytest.mark.asyncio
    async def test_missing_column_takes_default(self, cluster: InMemoryCluster) -> None:
        schema, partitioning = decimal_fixture_schema()
        handle = await cluster.create_table("t", schema, partitioning, 1)
        session = cluster.new_session(handle)
        await session.apply({"key": 1})
        await session.apply({"key": 2, "amount": None})
        await session.close()

        rows = {r["key"]: r for r in await cluster.read_all_rows(handle)}
        assert rows[1]["amount"] == Decimal("12345.67")
        assert rows[2]["amount"] is None

    @pytest.mark.asyncio
    async def test_missing_nullable_becomes_null(self, cluster: InMemoryCluster) -> None:
        schema, partitioning = fixture_schema()
        handle = await cluster.create_table("t", schema, partitioning, 1)
        session = cluster.new_session(handle)
        await session.apply({"key": 5})
        await session.close()
        assert await cluster.read_all_rows(handle) == [{"key": 5, "value": None}]

    @pytest.mark.parametrize(
        "row, message",
        [
            ({"key": 1, "extra": 1}, "Unknown columns"),
            ({"value": "x"}, "Missing value"),
            ({"key": None}, "Null value"),
            ({"key": "one"}, "Column 'key'"),
        ],
    )
    @pytest.mark.asyncio
    async def test_rejected_rows(
        self, cluster: InMemoryCluster, row: dict, message: str
    ) -> None:
        schema, partitioning = fixture_schema()
        handle = await cluster.create_table("t", schema, partitioning, 1)
        session = cluster.new_session(handle)
        with pytest.raises(ExternalOperationError, match=message):
            await session.apply(row)

    @pytest.mark.asyncio
    async def test_binary_normalised_to_bytes(self, cluster: InMemoryCluster) -> None:
        schema = TableSchema(
            columns=[
                ColumnDescriptor(name="k", type=LogicalType.BINARY, is_key=True),
            ]
        )
        handle = await cluster.create_table("b", schema, PartitioningSpec(), 1)
        session = cluster.new_session(handle)
        await session.apply({"k": bytearray(b"\x01\x02")})
        await session.close()

        rows = await cluster.read_all_rows(handle)
        assert type(rows[0]["k"]) is bytes
        assert rows[0]["k"] == b"\x01\x02"

    @pytest.mark.asyncio
    async def test_float_out_of_range_rejected(self, cluster: InMemoryCluster) -> None:
        """A double too large for float32 is a rejected write, not a crash."""
        schema = TableSchema(
            columns=[
                ColumnDescriptor(name="k", type=LogicalType.INT64, is_key=True),
                ColumnDescriptor(name="f", type=LogicalType.FLOAT),
            ]
        )
        handle = await cluster.create_table("f", schema, PartitioningSpec(), 1)
        session = cluster.new_session(handle)
        with pytest.raises(ExternalOperationError, match="Column 'f'"):
            await session.apply({"k": 1, "f": 1e300})
        assert session.pending_count == 0

    def test_session_on_missing_table(self, cluster: InMemoryCluster) -> None:
        with pytest.raises(ExternalOperationError):
            cluster.new_session(TableHandle(name="gone", table_id="x"))
