"""Row access for purge targets, resolved by table name."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy import MetaData, Table, and_, delete, func, inspect, or_, select, text, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from purge.errors import RowSourceNotFound

logger = logging.getLogger(__name__)


def _apply_filter(stmt, filter_expression: str):
    # The filter is a raw SQL predicate, e.g. "id = 1 AND status = 'closed'".
    if filter_expression and filter_expression.strip():
        stmt = stmt.where(text(filter_expression))
    return stmt


def _match_rows(columns, rows, keyed: bool = True):
    """WHERE clause matching each materialized row by its key values."""
    if keyed and len(columns) == 1:
        return columns[0].in_([row[0] for row in rows])
    if keyed:
        return tuple_(*columns).in_([tuple(row) for row in rows])
    return or_(*(
        and_(*(
            column.is_(None) if value is None else column == value
            for column, value in zip(columns, row)
        ))
        for row in rows
    ))


class RowSource(Protocol):
    """A filterable, countable, deletable set of rows for one table."""

    name: str

    async def fetch(self, session: AsyncSession, filter_expression: str = "") -> list[Any]:
        ...

    async def count(self, session: AsyncSession, filter_expression: str = "") -> int:
        ...

    async def remove(self, session: AsyncSession, rows: list[Any]) -> None:
        ...


class MappedRowSource:
    """Rows of an ORM-mapped class.

    Fetching returns mapped instances. Removal is one DELETE keyed on their
    identities: relationship cascades and nullification do not run, and
    foreign keys are enforced by the database alone.
    """

    def __init__(self, model: type):
        self.model = model
        self.name = model.__table__.name
        self._key_columns = list(inspect(model).primary_key)

    async def fetch(self, session: AsyncSession, filter_expression: str = "") -> list[Any]:
        result = await session.execute(_apply_filter(select(self.model), filter_expression))
        return list(result.scalars().all())

    async def count(self, session: AsyncSession, filter_expression: str = "") -> int:
        stmt = _apply_filter(select(func.count()).select_from(self.model), filter_expression)
        result = await session.execute(stmt)
        return int(result.scalar() or 0)

    async def remove(self, session: AsyncSession, rows: list[Any]) -> None:
        if not rows:
            return
        identities = [inspect(row).identity for row in rows]
        await session.execute(delete(self.model).where(_match_rows(self._key_columns, identities)))

    def __repr__(self) -> str:
        return f"<MappedRowSource({self.name} -> {self.model.__name__})>"


class TableRowSource:
    """Rows of a Core table with no mapped class.

    Matching rows are materialized by primary key (or by every column when
    the table has no key) and deleted with a single DELETE statement.
    """

    def __init__(self, table: Table):
        self.table = table
        self.name = table.name
        self._key_columns = list(table.primary_key.columns) or list(table.columns)

    async def fetch(self, session: AsyncSession, filter_expression: str = "") -> list[Any]:
        stmt = _apply_filter(select(*self._key_columns).select_from(self.table), filter_expression)
        result = await session.execute(stmt)
        return list(result.all())

    async def count(self, session: AsyncSession, filter_expression: str = "") -> int:
        stmt = _apply_filter(select(func.count()).select_from(self.table), filter_expression)
        result = await session.execute(stmt)
        return int(result.scalar() or 0)

    async def remove(self, session: AsyncSession, rows: list[Any]) -> None:
        if not rows:
            return
        keyed = bool(self.table.primary_key.columns)
        await session.execute(delete(self.table).where(_match_rows(self._key_columns, rows, keyed)))

    def __repr__(self) -> str:
        return f"<TableRowSource({self.name})>"


class RowSourceRegistry:
    """Static lookup of row sources by case-insensitive table or class name."""

    def __init__(self, sources: dict[str, RowSource] | None = None):
        self._sources: dict[str, RowSource] = {}
        for name, source in (sources or {}).items():
            self._sources.setdefault(name.casefold(), source)

    @classmethod
    def from_declarative_base(cls, base) -> RowSourceRegistry:
        """Register every mapped class of ``base``, then its unmapped tables."""
        sources: dict[str, RowSource] = {}
        mappers = sorted(base.registry.mappers, key=lambda m: m.class_.__name__)
        for mapper in mappers:
            if mapper.inherits is not None or not isinstance(mapper.local_table, Table):
                continue
            source = MappedRowSource(mapper.class_)
            sources.setdefault(source.name.casefold(), source)

        for mapper in mappers:
            if mapper.inherits is not None or not isinstance(mapper.local_table, Table):
                continue
            alias = mapper.class_.__name__.casefold()
            sources.setdefault(alias, sources[mapper.local_table.name.casefold()])

        for table in base.metadata.tables.values():
            sources.setdefault(table.name.casefold(), TableRowSource(table))

        logger.debug("Row source registry built with %d entries", len(sources))
        return cls(sources)

    @classmethod
    def from_metadata(cls, metadata: MetaData) -> RowSourceRegistry:
        return cls({table.name: TableRowSource(table) for table in metadata.tables.values()})

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    def names(self) -> list[str]:
        return sorted({source.name for source in self._sources.values()})

    def resolve(self, name: str) -> RowSource | None:
        return self._sources.get(name.casefold())

    def get(self, name: str) -> RowSource:
        source = self._sources.get(name.casefold())
        if source is None:
            raise RowSourceNotFound(name)
        return source
