"""Table dependency graph builder and traversal."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from purge.errors import ConfigurationError, VertexNotFound

logger = logging.getLogger(__name__)

ROOT_NAME = "Root"


def _key(name: str) -> str:
    return name.casefold()


class DependencyNode:
    """A table in the dependency graph.

    Edges point from a referenced table to the tables that reference it, so
    every node in ``dependents`` must be emptied before this one.
    """

    def __init__(self, name: str):
        self.name = name
        self._dependents: List[DependencyNode] = []

    @property
    def dependents(self) -> Tuple[DependencyNode, ...]:
        return tuple(self._dependents)

    def _add_dependent(self, node: DependencyNode) -> None:
        if node not in self._dependents:
            self._dependents.append(node)

    def traverse(
        self,
        visit: Callable[[DependencyNode], None],
        visited: Set[str],
        on_revisit: Optional[Callable[[DependencyNode], None]] = None,
    ) -> None:
        """Depth-first walk that calls ``visit`` after a node's dependents.

        ``visited`` holds case-folded names; a node already in it is reported
        through ``on_revisit`` and not descended into again.
        """
        key = _key(self.name)
        if key in visited:
            if on_revisit is not None:
                on_revisit(self)
            else:
                logger.debug(
                    "Already visited %s, skipping to avoid circular dependency", self.name
                )
            return
        visited.add(key)

        for dependent in self._dependents:
            dependent.traverse(visit, visited, on_revisit)

        visit(self)

    def __repr__(self) -> str:
        return f"<DependencyNode({self.name}, dependents={len(self._dependents)})>"


class DependencyGraph:
    """Read-only graph of which tables must be emptied before which others."""

    def __init__(self, root: DependencyNode, nodes: Dict[str, DependencyNode]):
        self._root = root
        self._nodes = nodes

    @classmethod
    def build(
        cls,
        edges: Iterable[Tuple[str, str]],
        tables: Optional[Iterable[str]] = None,
    ) -> DependencyGraph:
        """
        Build the graph from foreign-key edges.

        Args:
            edges: ``(referenced_table, dependent_table)`` pairs
            tables: Full table list, including tables without foreign keys.
                When omitted the vertex set is derived from the edges.

        Returns:
            DependencyGraph instance

        Raises:
            ConfigurationError: An edge names a table missing from ``tables``.
        """
        edges = list(edges)
        if tables is None:
            tables = [name for edge in edges for name in edge]

        nodes: Dict[str, DependencyNode] = {}
        for name in tables:
            if not name:
                raise ConfigurationError("Table names must be non-empty")
            nodes.setdefault(_key(name), DependencyNode(name))

        for referenced, dependent in edges:
            for name in (referenced, dependent):
                if _key(name) not in nodes:
                    raise ConfigurationError(
                        f"Edge {referenced} -> {dependent} references unknown table {name!r}"
                    )
            nodes[_key(referenced)]._add_dependent(nodes[_key(dependent)])

        root = DependencyNode(ROOT_NAME)
        referenced_somewhere = {
            id(dependent) for node in nodes.values() for dependent in node._dependents
        }
        for node in nodes.values():
            if id(node) not in referenced_somewhere:
                root._add_dependent(node)

        # Tables that only appear inside cycles have no zero in-degree entry
        # point; attach one member of each such cycle so the root reaches it.
        reachable: Set[str] = set()
        for node in list(root._dependents):
            node.traverse(lambda n: None, reachable, on_revisit=lambda n: None)
        for key, node in nodes.items():
            if key not in reachable:
                logger.debug("Attaching cyclic table %s to the graph root", node.name)
                root._add_dependent(node)
                node.traverse(lambda n: None, reachable, on_revisit=lambda n: None)

        logger.debug(
            "Dependency graph built: %d tables, %d edges, %d top-level",
            len(nodes), len(edges), len(root._dependents),
        )
        return cls(root, nodes)

    @property
    def root(self) -> DependencyNode:
        return self._root

    @property
    def nodes(self) -> Tuple[DependencyNode, ...]:
        return tuple(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _key(name) in self._nodes

    def find_by_name(self, name: str, search_all: bool = False) -> Optional[DependencyNode]:
        """Case-insensitive lookup of a purge entry point.

        Only top-level tables (direct children of the root) are candidates
        unless ``search_all`` is set.
        """
        if search_all:
            return self._nodes.get(_key(name))
        wanted = _key(name)
        for node in self._root.dependents:
            if _key(node.name) == wanted:
                return node
        return None

    def get(self, name: str) -> DependencyNode:
        node = self._nodes.get(_key(name))
        if node is None:
            raise VertexNotFound(name)
        return node

    def traverse(
        self,
        visit: Callable[[DependencyNode], None],
        on_revisit: Optional[Callable[[DependencyNode], None]] = None,
    ) -> None:
        """Walk every table once, dependents before the tables they reference."""
        if visit is None:
            raise TypeError("visit callback is required")
        visited: Set[str] = set()
        for node in self._root.dependents:
            node.traverse(visit, visited, on_revisit)

    def traversal_order(self) -> List[str]:
        order: List[str] = []
        self.traverse(lambda node: order.append(node.name))
        return order

    def dependents_closure(self, node: DependencyNode) -> List[DependencyNode]:
        """
        Collect every direct and indirect dependent of ``node``.

        Nodes are marked visited before recursing, which terminates cycles,
        and appended after their own dependents, so the returned list is a
        safe deletion order: nothing appears before a table that references it.
        The start node itself is not included.
        """
        visited: Set[int] = {id(node)}
        closure: List[DependencyNode] = []

        def collect(current: DependencyNode) -> None:
            for dependent in current._dependents:
                if id(dependent) in visited:
                    logger.debug(
                        "Node %s already processed, skipping to prevent circular dependency",
                        dependent.name,
                    )
                    continue
                visited.add(id(dependent))
                collect(dependent)
                closure.append(dependent)

        collect(node)
        return closure
