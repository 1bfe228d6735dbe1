"""Foreign-key edge sources: ORM metadata, live reflection, or a YAML schema map."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncEngine

from purge.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class SchemaSnapshot:
    tables: list[str] = field(default_factory=list)
    edges: list[tuple[str, str]] = field(default_factory=list)  # (referenced, dependent)


def snapshot_from_metadata(metadata: MetaData) -> SchemaSnapshot:
    """Collect tables and foreign-key edges from SQLAlchemy metadata.

    The referenced table is read from the foreign key's target name rather
    than resolved, so a key pointing outside ``metadata`` reaches the graph
    builder and fails there as a configuration error.
    """
    snapshot = SchemaSnapshot()
    for table in sorted(metadata.tables.values(), key=lambda t: t.name):
        snapshot.tables.append(table.name)
        for fk in sorted(table.foreign_keys, key=lambda f: f.target_fullname):
            # target_fullname is "table.column" or "schema.table.column"
            parts = fk.target_fullname.split(".")
            referenced = parts[-2]
            edge = (referenced, table.name)
            if edge not in snapshot.edges:
                snapshot.edges.append(edge)
    return snapshot


async def reflect_snapshot(engine: AsyncEngine, schema: str | None = None) -> SchemaSnapshot:
    """Reflect a live database and return its foreign-key snapshot."""
    metadata = MetaData(schema=schema)
    async with engine.connect() as conn:
        await conn.run_sync(metadata.reflect)
    snapshot = snapshot_from_metadata(metadata)
    logger.info(
        "Reflected %d tables and %d foreign keys", len(snapshot.tables), len(snapshot.edges)
    )
    return snapshot


def load_schema_map(path: str | Path) -> SchemaSnapshot:
    """
    Load a schema map file.

    Format:
        tables:
          customers: {}
          orders:
            references: [customers]

    Returns:
        SchemaSnapshot with one edge per (referenced, table) pair
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    tables = data.get("tables") if isinstance(data, dict) else None
    if not isinstance(tables, dict):
        raise ConfigurationError(f"{path}: expected a 'tables' mapping")

    snapshot = SchemaSnapshot()
    for table_name, table_data in tables.items():
        if table_data is None:
            table_data = {}
        if not isinstance(table_data, dict):
            raise ConfigurationError(
                f"{path}: table '{table_name}' must be a mapping, got {type(table_data).__name__}"
            )
        references = table_data.get("references", [])
        if not isinstance(references, list):
            raise ConfigurationError(
                f"{path}: references of '{table_name}' must be a list of table names"
            )

        snapshot.tables.append(str(table_name))
        for referenced in references:
            snapshot.edges.append((str(referenced), str(table_name)))
    return snapshot
