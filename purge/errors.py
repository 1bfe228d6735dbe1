"""Exception types raised by the dependency graph and purge engine."""

from __future__ import annotations


class PurgeError(Exception):
    """Base class for all purge failures."""


class ConfigurationError(PurgeError):
    """Raised when the schema snapshot cannot be turned into a graph."""


class VertexNotFound(PurgeError):
    """Raised when a table is not part of the dependency graph."""

    def __init__(self, name: str):
        super().__init__(f"Table {name!r} not found in the dependency graph")
        self.name = name


class RowSourceNotFound(PurgeError):
    """Raised when a table has no registered row source."""

    def __init__(self, name: str):
        super().__init__(f"No row source registered for {name!r}")
        self.name = name


class PersistenceFailure(PurgeError):
    """Raised when fetching, removing or saving rows fails mid-purge."""

    def __init__(self, table_name: str, message: str):
        super().__init__(f"Purge failed at {table_name}: {message}")
        self.table_name = table_name


class PurgeCancelled(PurgeError):
    """Raised when the caller's cancellation event is set during a purge."""
    pass
