"""Table Purge — admin API for foreign-key aware cascading deletes."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.cleanup import build_purge_engine
from src.config import settings
from src.database import close_db, init_db
from src.middleware.api_key_auth import ApiKeyAuthMiddleware
from src.routes import purge as purge_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    # Graph and row-source registry are built once and shared by all requests
    app.state.purge_engine = build_purge_engine()
    yield
    await close_db()


app = FastAPI(
    title="Table Purge",
    description="Purge rows together with every row that references them, in one transaction",
    version=settings.api_version,
    lifespan=lifespan,
)

app.add_middleware(ApiKeyAuthMiddleware, protected_prefix=settings.api_prefix)

app.include_router(purge_routes.router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "table-purge", "version": settings.api_version}
