"""Cleanup settings shared by every delete in a purge."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class CleanupConfig:
    soft_delete: bool = False
    search_all_tables: bool = False  # False: only top-level tables are purge entry points

    def with_soft_delete(self, enabled: bool) -> CleanupConfig:
        return replace(self, soft_delete=enabled)

    @classmethod
    def from_settings(cls, settings) -> CleanupConfig:
        """Build the config from the application's pydantic settings."""
        return cls(
            soft_delete=settings.soft_delete,
            search_all_tables=settings.purge_any_table,
        )
