"""Application wiring for the purge engine."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from purge import CleanupConfig, PurgeEngine, create_purge_engine
from purge.schema_map import load_schema_map
from src.config import Settings, settings as default_settings
from src.database import Base, async_session

logger = logging.getLogger(__name__)


def build_purge_engine(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    settings: Settings | None = None,
) -> PurgeEngine:
    """Create the engine for the app's entities, honouring TABLE_PURGE_* settings."""
    import src.entities  # noqa: F401

    settings = settings or default_settings
    snapshot = None
    if settings.schema_map_path:
        logger.info("Loading schema map from %s", settings.schema_map_path)
        snapshot = load_schema_map(settings.schema_map_path)

    return create_purge_engine(
        session_factory or async_session,
        Base,
        config=CleanupConfig.from_settings(settings),
        snapshot=snapshot,
    )
