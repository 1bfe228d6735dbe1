"""Foreign-key aware cascading purge."""

from purge.config import CleanupConfig
from purge.engine import PurgeEngine
from purge.errors import (
    ConfigurationError,
    PersistenceFailure,
    PurgeCancelled,
    PurgeError,
    RowSourceNotFound,
    VertexNotFound,
)
from purge.factory import create_purge_engine
from purge.graph import DependencyGraph, DependencyNode
from purge.results import DeleteOutcome, DeleteResult, PurgeResult, PurgeState

__all__ = [
    "CleanupConfig", "PurgeEngine", "create_purge_engine",
    "DependencyGraph", "DependencyNode",
    "DeleteOutcome", "DeleteResult", "PurgeResult", "PurgeState",
    "PurgeError", "ConfigurationError", "VertexNotFound",
    "RowSourceNotFound", "PersistenceFailure", "PurgeCancelled",
]
