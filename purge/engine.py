"""Cascading purge engine — deletes a table's rows after everything that references them."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Session

from purge.config import CleanupConfig
from purge.errors import PersistenceFailure, PurgeCancelled, PurgeError
from purge.graph import DependencyGraph, DependencyNode
from purge.results import DeleteOutcome, DeleteResult, PurgeResult, PurgeState
from purge.row_sources import RowSourceRegistry

logger = logging.getLogger(__name__)


def _flush(sync_session: Session) -> None:
    sync_session.flush()


def _check_cancelled(cancellation: asyncio.Event | None) -> None:
    if cancellation is not None and cancellation.is_set():
        raise PurgeCancelled("Purge cancelled by caller")


class PurgeEngine:
    """Purges filtered rows from a table together with all of its dependents.

    One engine is shared across requests: the graph and the row-source
    registry are read-only, and every call opens its own session from
    ``session_factory``.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        row_sources: RowSourceRegistry,
        session_factory: async_sessionmaker[AsyncSession],
        config: CleanupConfig | None = None,
    ):
        if graph is None:
            raise ValueError("graph is required")
        if row_sources is None:
            raise ValueError("row_sources is required")
        if session_factory is None:
            raise ValueError("session_factory is required")
        self._graph = graph
        self._row_sources = row_sources
        self._session_factory = session_factory
        self._config = config or CleanupConfig()
        logger.info(
            "PurgeEngine initialized: %d tables, soft_delete=%s, search_all_tables=%s",
            len(graph), self._config.soft_delete, self._config.search_all_tables,
        )

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    @property
    def config(self) -> CleanupConfig:
        return self._config

    def find_entry_point(self, table_name: str) -> DependencyNode | None:
        """Look up a purge entry point using the configured search scope."""
        logger.debug("Attempting to find a dependency node with name %s", table_name)
        node = self._graph.find_by_name(table_name, search_all=self._config.search_all_tables)
        if node is None:
            logger.warning("Table %s not found in the dependency graph", table_name)
        return node

    def _collect_dependents(self, node: DependencyNode | None) -> list[DependencyNode]:
        if node is None:
            return []
        dependents = self._graph.dependents_closure(node)
        logger.debug(
            "Dependency collection for %s completed: %s",
            node.name, [d.name for d in dependents] or "no dependents",
        )
        return dependents

    def plan(self, table_name: str) -> list[str]:
        """Return the tables a purge of ``table_name`` would touch, in delete order."""
        node = self.find_entry_point(table_name)
        dependents = self._collect_dependents(node)
        return [d.name for d in dependents] + [node.name if node else table_name]

    async def count_rows(self, table_name: str, filter_expression: str = "") -> int:
        """Count rows of ``table_name`` matching the filter.

        Raises:
            RowSourceNotFound: No row source is registered for the table.
        """
        source = self._row_sources.get(table_name)
        async with self._session_factory() as session:
            return await source.count(session, filter_expression)

    async def _persist(self, session: AsyncSession) -> None:
        if self._config.soft_delete:
            await session.flush()
        else:
            await session.run_sync(_flush)

    async def _delete_in_session(
        self,
        session: AsyncSession,
        entity_name: str,
        filter_expression: str,
        cancellation: asyncio.Event | None,
    ) -> DeleteResult:
        _check_cancelled(cancellation)
        logger.debug("Deleting records from %s with filter %r", entity_name, filter_expression)

        source = self._row_sources.resolve(entity_name)
        if source is None:
            logger.warning("%s row source not found, skipping", entity_name)
            return DeleteResult(entity_name, DeleteOutcome.SOURCE_NOT_FOUND)

        try:
            rows = await source.fetch(session, filter_expression)
            if not rows:
                logger.info(
                    "No records found to delete in %s with the specified filter", entity_name
                )
                return DeleteResult(entity_name, DeleteOutcome.NONE_FOUND)

            _check_cancelled(cancellation)
            await source.remove(session, rows)
            await self._persist(session)
        except PurgeError:
            raise
        except Exception as e:
            raise PersistenceFailure(entity_name, str(e)) from e

        logger.info("Deleted %d record(s) from %s", len(rows), entity_name)
        return DeleteResult(entity_name, DeleteOutcome.DELETED, len(rows))

    async def delete_rows(
        self,
        entity_name: str,
        filter_expression: str = "",
        cancellation: asyncio.Event | None = None,
    ) -> DeleteResult:
        """Delete matching rows from a single table in its own transaction.

        No dependents are touched. Zero matches and unknown tables are
        reported through ``DeleteResult.outcome``; failures raise
        ``PersistenceFailure`` after the transaction is rolled back.
        """
        async with self._session_factory() as session:
            async with session.begin():
                return await self._delete_in_session(
                    session, entity_name, filter_expression, cancellation
                )

    async def purge(
        self,
        table_name: str,
        filter_expression: str = "",
        cancellation: asyncio.Event | None = None,
    ) -> PurgeResult:
        """
        Delete ``table_name`` rows matching the filter and every row of its
        transitive dependents, atomically.

        Dependents are emptied deepest first and without a filter; the
        target's filtered delete runs last. Any failure rolls the whole
        purge back and is returned in ``PurgeResult.error`` rather than
        raised. Task cancellation also rolls back and is re-raised.

        Args:
            table_name: Entry-point table (case-insensitive)
            filter_expression: SQL predicate applied to ``table_name`` only
            cancellation: Event the caller sets to abandon the purge

        Returns:
            PurgeResult in state COMMITTED or ROLLED_BACK
        """
        result = PurgeResult(table_name=table_name, filter_expression=filter_expression)
        logger.info("Starting purge of %s with filter %r", table_name, filter_expression)

        self._transition(result, PurgeState.GRAPH_LOOKUP)
        node = self.find_entry_point(table_name)
        target = node.name if node is not None else table_name

        self._transition(result, PurgeState.CLOSURE_COLLECTION)
        dependents = self._collect_dependents(node)
        result.order = [d.name for d in dependents] + [target]

        current = target
        async with self._session_factory() as session:
            try:
                _check_cancelled(cancellation)
                await session.begin()
                self._transition(result, PurgeState.TRANSACTION_OPEN)

                self._transition(result, PurgeState.DELETING)
                for dependent in dependents:
                    current = dependent.name
                    deleted = await self._delete_in_session(
                        session, dependent.name, "", cancellation
                    )
                    result.deleted[dependent.name] = deleted.count

                current = target
                deleted = await self._delete_in_session(
                    session, target, filter_expression, cancellation
                )
                result.deleted[target] = deleted.count

                _check_cancelled(cancellation)
                await session.commit()
            except asyncio.CancelledError:
                await self._rollback(session, table_name)
                self._transition(result, PurgeState.ROLLED_BACK)
                logger.warning("Purge of %s cancelled, transaction rolled back", table_name)
                raise
            except PurgeCancelled as e:
                await self._rollback(session, table_name)
                self._transition(result, PurgeState.ROLLED_BACK)
                result.error = e
                logger.warning("Purge of %s cancelled at %s, transaction rolled back", table_name, current)
                return result
            except Exception as e:
                await self._rollback(session, table_name)
                self._transition(result, PurgeState.ROLLED_BACK)
                if isinstance(e, PurgeError):
                    result.error = e
                else:
                    result.error = PersistenceFailure(current, str(e))
                    result.error.__cause__ = e
                logger.exception("Error during purge of %s: %s", table_name, e)
                return result

        self._transition(result, PurgeState.COMMITTED)
        logger.info(
            "Purge completed successfully for %s: %d row(s) across %d table(s)",
            table_name, result.total_deleted, len(result.deleted),
        )
        return result

    @staticmethod
    async def _rollback(session: AsyncSession, table_name: str) -> None:
        # Closing the session still discards the transaction if this fails
        try:
            await session.rollback()
        except Exception:
            logger.exception("Rollback of purge of %s failed", table_name)

    @staticmethod
    def _transition(result: PurgeResult, state: PurgeState) -> None:
        logger.debug("Purge %s: %s -> %s", result.table_name, result.state.value, state.value)
        result.state = state
