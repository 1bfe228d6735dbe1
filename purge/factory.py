"""Wire a PurgeEngine from a declarative base and a session factory."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from purge.config import CleanupConfig
from purge.engine import PurgeEngine
from purge.graph import DependencyGraph
from purge.row_sources import RowSourceRegistry
from purge.schema_map import SchemaSnapshot, snapshot_from_metadata

logger = logging.getLogger(__name__)


def create_purge_engine(
    session_factory: async_sessionmaker[AsyncSession],
    base,
    config: CleanupConfig | None = None,
    snapshot: SchemaSnapshot | None = None,
) -> PurgeEngine:
    """
    Build the dependency graph and row-source registry once and return an engine.

    Args:
        session_factory: Produces one AsyncSession per purge call
        base: Declarative base whose mapped classes and tables are purgeable
        config: Cleanup settings (defaults to CleanupConfig())
        snapshot: Edge source override, e.g. from load_schema_map();
            defaults to the base's metadata

    Raises:
        ConfigurationError: The snapshot contains an edge to an unknown table.
    """
    if snapshot is None:
        snapshot = snapshot_from_metadata(base.metadata)
    graph = DependencyGraph.build(snapshot.edges, snapshot.tables)
    registry = RowSourceRegistry.from_declarative_base(base)

    missing = [node.name for node in graph.nodes if node.name not in registry]
    if missing:
        logger.warning("Tables without a row source will be skipped: %s", ", ".join(missing))

    return PurgeEngine(graph, registry, session_factory, config)
