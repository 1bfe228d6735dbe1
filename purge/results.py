"""Outcome types returned by the purge engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from purge.errors import PurgeError


class PurgeState(str, enum.Enum):
    IDLE = "idle"
    GRAPH_LOOKUP = "graph_lookup"
    CLOSURE_COLLECTION = "closure_collection"
    TRANSACTION_OPEN = "transaction_open"
    DELETING = "deleting"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class DeleteOutcome(str, enum.Enum):
    DELETED = "deleted"
    NONE_FOUND = "none_found"
    SOURCE_NOT_FOUND = "source_not_found"


@dataclass
class DeleteResult:
    entity_name: str
    outcome: DeleteOutcome
    count: int = 0


@dataclass
class PurgeResult:
    """Result of one purge call.

    ``deleted`` maps each table to the number of rows removed, in the order
    the deletes ran. On rollback the counts describe what had been deleted
    before the failure; none of it was committed.
    """

    table_name: str
    filter_expression: str
    state: PurgeState = PurgeState.IDLE
    order: list[str] = field(default_factory=list)
    deleted: dict[str, int] = field(default_factory=dict)
    error: PurgeError | None = None

    @property
    def succeeded(self) -> bool:
        return self.state == PurgeState.COMMITTED

    @property
    def total_deleted(self) -> int:
        if not self.succeeded:
            return 0
        return sum(self.deleted.values())
