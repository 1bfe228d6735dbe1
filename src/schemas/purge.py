"""Pydantic schemas for purge endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class PurgeRequest(BaseModel):
    filter: str = ""


class PurgeResponse(BaseModel):
    table_name: str
    filter: str
    state: str
    order: list[str]
    deleted: dict[str, int]
    total_deleted: int
    error: str | None = None


class PlanStep(BaseModel):
    table_name: str
    row_count: int | None = None  # None when the table has no row source
    filtered: bool = False


class PurgePlanResponse(BaseModel):
    table_name: str
    filter: str
    steps: list[PlanStep]


class GraphResponse(BaseModel):
    top_level: list[str]
    traversal_order: list[str]
