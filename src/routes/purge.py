"""Purge endpoints — inspect the dependency graph and run cascading purges."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.exc import SQLAlchemyError

from purge import PurgeEngine, PurgeResult, RowSourceNotFound
from src.schemas.purge import (
    GraphResponse,
    PlanStep,
    PurgePlanResponse,
    PurgeRequest,
    PurgeResponse,
)

router = APIRouter(prefix="/purge", tags=["purge"])


def get_purge_engine(request: Request) -> PurgeEngine:
    engine = getattr(request.app.state, "purge_engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Purge engine not initialized")
    return engine


def _purge_response(result: PurgeResult) -> PurgeResponse:
    return PurgeResponse(
        table_name=result.table_name,
        filter=result.filter_expression,
        state=result.state.value,
        order=result.order,
        deleted=result.deleted,
        total_deleted=result.total_deleted,
        error=str(result.error) if result.error else None,
    )


@router.get("/graph", response_model=GraphResponse)
async def get_graph(engine: PurgeEngine = Depends(get_purge_engine)):
    """List top-level tables and the full dependents-first traversal order."""
    return GraphResponse(
        top_level=[node.name for node in engine.graph.root.dependents],
        traversal_order=engine.graph.traversal_order(),
    )


@router.get("/{table_name}/plan", response_model=PurgePlanResponse)
async def get_plan(
    table_name: str,
    filter: str = Query("", description="SQL predicate applied to the target table"),
    engine: PurgeEngine = Depends(get_purge_engine),
):
    """Show which tables a purge would empty, in order, with current row counts."""
    if engine.find_entry_point(table_name) is None:
        raise HTTPException(
            status_code=404,
            detail=f"Table {table_name} is not a purge entry point",
        )

    order = engine.plan(table_name)
    steps = []
    for idx, name in enumerate(order):
        is_target = idx == len(order) - 1
        try:
            count = await engine.count_rows(name, filter if is_target else "")
        except RowSourceNotFound:
            count = None
        except SQLAlchemyError as e:
            raise HTTPException(status_code=400, detail=f"Invalid filter: {e.__class__.__name__}")
        steps.append(PlanStep(table_name=name, row_count=count, filtered=is_target and bool(filter)))

    return PurgePlanResponse(table_name=table_name, filter=filter, steps=steps)


@router.post("/{table_name}", response_model=PurgeResponse)
async def purge_table(
    table_name: str,
    body: PurgeRequest,
    response: Response,
    engine: PurgeEngine = Depends(get_purge_engine),
):
    """Purge filtered rows from a table and every row of its dependents."""
    result = await engine.purge(table_name, body.filter)
    if not result.succeeded:
        response.status_code = 500
    return _purge_response(result)
