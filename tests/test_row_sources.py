"""Tests for row sources and the row-source registry."""

import pytest
import pytest_asyncio
from sqlalchemy import Column, Integer, MetaData, String, Table, insert
from sqlalchemy.exc import IntegrityError

from purge.errors import RowSourceNotFound
from purge.row_sources import MappedRowSource, RowSourceRegistry, TableRowSource
from src.database import Base
from src.entities import Category, Customer, OrderLine, Shipment


class TestRegistry:
    def test_mapped_classes_registered_by_table_name(self):
        registry = RowSourceRegistry.from_declarative_base(Base)
        source = registry.get("order_lines")
        assert isinstance(source, MappedRowSource)
        assert source.model is OrderLine

    def test_class_name_alias(self):
        registry = RowSourceRegistry.from_declarative_base(Base)
        assert registry.get("OrderLine") is registry.get("order_lines")

    def test_lookup_is_case_insensitive(self):
        registry = RowSourceRegistry.from_declarative_base(Base)
        assert registry.resolve("CUSTOMERS") is registry.resolve("customers")
        assert registry.get("customer").model is Customer

    def test_unknown(self):
        registry = RowSourceRegistry.from_declarative_base(Base)
        assert registry.resolve("invoices") is None
        assert "invoices" not in registry
        with pytest.raises(RowSourceNotFound, match="invoices"):
            registry.get("invoices")

    def test_names(self):
        registry = RowSourceRegistry.from_declarative_base(Base)
        assert registry.names() == [
            "categories", "customers", "order_lines", "orders", "products", "shipments",
        ]

    def test_from_metadata_uses_core_sources(self):
        metadata = MetaData()
        Table("audit", metadata, Column("id", Integer, primary_key=True))
        registry = RowSourceRegistry.from_metadata(metadata)
        assert isinstance(registry.get("AUDIT"), TableRowSource)


class TestMappedRowSource:
    @pytest.mark.asyncio
    async def test_fetch_count_remove(self, session_factory, shop):
        source = MappedRowSource(Shipment)
        async with session_factory() as db:
            rows = await source.fetch(db, "carrier = 'ups'")
            assert [r.id for r in rows] == [2]
            assert await source.count(db) == 2
            await source.remove(db, rows)
            await db.commit()

        async with session_factory() as db:
            assert await source.count(db) == 1

    @pytest.mark.asyncio
    async def test_blank_filter_matches_everything(self, session_factory, shop):
        source = MappedRowSource(OrderLine)
        async with session_factory() as db:
            assert len(await source.fetch(db, "   ")) == 4

    @pytest.mark.asyncio
    async def test_remove_leaves_unmatched_children_to_the_foreign_key(self, session_factory, shop):
        source = MappedRowSource(Category)
        async with session_factory() as db:
            rows = await source.fetch(db, "id = 1")
            with pytest.raises(IntegrityError):
                await source.remove(db, rows)
            await db.rollback()

        async with session_factory() as db:
            child = await db.get(Category, 2)
            assert child.parent_id == 1


class TestTableRowSource:
    @pytest_asyncio.fixture
    async def tables(self, test_engine):
        metadata = MetaData()
        single = Table(
            "events", metadata,
            Column("id", Integer, primary_key=True),
            Column("kind", String(20)),
        )
        composite = Table(
            "memberships", metadata,
            Column("group_id", Integer, primary_key=True),
            Column("user_id", Integer, primary_key=True),
        )
        keyless = Table(
            "tags", metadata,
            Column("label", String(20)),
            Column("note", String(20), nullable=True),
        )
        async with test_engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
            await conn.execute(insert(single), [
                {"id": 1, "kind": "click"}, {"id": 2, "kind": "view"}, {"id": 3, "kind": "click"},
            ])
            await conn.execute(insert(composite), [
                {"group_id": 1, "user_id": 1}, {"group_id": 1, "user_id": 2}, {"group_id": 2, "user_id": 1},
            ])
            await conn.execute(insert(keyless), [
                {"label": "a", "note": None}, {"label": "a", "note": "x"}, {"label": "b", "note": None},
            ])
        return single, composite, keyless

    @pytest.mark.asyncio
    async def test_single_key(self, session_factory, tables):
        source = TableRowSource(tables[0])
        async with session_factory() as db:
            rows = await source.fetch(db, "kind = 'click'")
            assert sorted(r[0] for r in rows) == [1, 3]
            await source.remove(db, rows)
            await db.commit()
            assert await source.count(db) == 1

    @pytest.mark.asyncio
    async def test_composite_key(self, session_factory, tables):
        source = TableRowSource(tables[1])
        async with session_factory() as db:
            rows = await source.fetch(db, "group_id = 1")
            await source.remove(db, rows)
            await db.commit()
            assert await source.count(db) == 1
            assert await source.count(db, "group_id = 2") == 1

    @pytest.mark.asyncio
    async def test_keyless_table_matches_nulls(self, session_factory, tables):
        source = TableRowSource(tables[2])
        async with session_factory() as db:
            rows = await source.fetch(db, "note IS NULL")
            assert len(rows) == 2
            await source.remove(db, rows)
            await db.commit()
            assert await source.count(db) == 1

    @pytest.mark.asyncio
    async def test_remove_nothing(self, session_factory, tables):
        source = TableRowSource(tables[0])
        async with session_factory() as db:
            await source.remove(db, [])
            assert await source.count(db) == 3
