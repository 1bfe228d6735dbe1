"""Tests for the purge endpoints using SQLite in-memory."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from purge import CleanupConfig, create_purge_engine
from src.config import settings
from src.database import Base
from src.main import app
from src.routes.purge import get_purge_engine
from tests.conftest import table_counts


@pytest_asyncio.fixture
async def client(session_factory, monkeypatch):
    # Debug mode lets the auth middleware through without an API key
    monkeypatch.setattr(settings, "debug", True)
    monkeypatch.setattr(settings, "api_key", "")
    engine = create_purge_engine(session_factory, Base)
    app.dependency_overrides[get_purge_engine] = lambda: engine

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["service"] == "table-purge"


class TestGraph:
    @pytest.mark.asyncio
    async def test_graph(self, client):
        resp = await client.get("/api/v1/purge/graph")
        assert resp.status_code == 200
        data = resp.json()
        assert data["top_level"] == ["customers", "categories"]
        order = data["traversal_order"]
        assert sorted(order) == [
            "categories", "customers", "order_lines", "orders", "products", "shipments",
        ]
        assert order.index("order_lines") < order.index("orders") < order.index("customers")


class TestPlan:
    @pytest.mark.asyncio
    async def test_plan_with_counts(self, client, shop):
        resp = await client.get("/api/v1/purge/customers/plan", params={"filter": "id = 2"})
        assert resp.status_code == 200
        steps = resp.json()["steps"]
        assert [s["table_name"] for s in steps] == ["order_lines", "shipments", "orders", "customers"]
        assert [s["row_count"] for s in steps] == [4, 2, 3, 1]
        assert [s["filtered"] for s in steps] == [False, False, False, True]

    @pytest.mark.asyncio
    async def test_plan_unknown_table(self, client):
        resp = await client.get("/api/v1/purge/invoices/plan")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_plan_nested_table_not_an_entry_point(self, client, shop):
        resp = await client.get("/api/v1/purge/orders/plan")
        assert resp.status_code == 404
        assert "entry point" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_plan_nested_table_with_search_all(self, client, session_factory, shop):
        engine = create_purge_engine(session_factory, Base, CleanupConfig(search_all_tables=True))
        app.dependency_overrides[get_purge_engine] = lambda: engine
        resp = await client.get("/api/v1/purge/orders/plan")
        assert resp.status_code == 200
        steps = resp.json()["steps"]
        assert [s["table_name"] for s in steps] == ["order_lines", "shipments", "orders"]
        assert [s["row_count"] for s in steps] == [4, 2, 3]

    @pytest.mark.asyncio
    async def test_plan_invalid_filter(self, client, shop):
        resp = await client.get("/api/v1/purge/customers/plan", params={"filter": "nope = 1"})
        assert resp.status_code == 400


class TestPurge:
    @pytest.mark.asyncio
    async def test_purge_commits(self, client, session_factory, shop):
        resp = await client.post("/api/v1/purge/Customers", json={"filter": "id = 1"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["state"] == "committed"
        assert data["deleted"] == {"order_lines": 4, "shipments": 2, "orders": 3, "customers": 1}
        assert data["total_deleted"] == 10
        assert data["error"] is None
        assert (await table_counts(session_factory))["customers"] == 1

    @pytest.mark.asyncio
    async def test_purge_without_body_filter(self, client, session_factory, shop):
        resp = await client.post("/api/v1/purge/customers", json={})
        assert resp.status_code == 200
        assert (await table_counts(session_factory))["customers"] == 0

    @pytest.mark.asyncio
    async def test_rolled_back_purge_returns_500(self, client, session_factory, shop):
        before = await table_counts(session_factory)
        resp = await client.post("/api/v1/purge/orders", json={"filter": "id = 1"})
        assert resp.status_code == 500
        data = resp.json()
        assert data["state"] == "rolled_back"
        assert data["total_deleted"] == 0
        assert "orders" in data["error"]
        assert await table_counts(session_factory) == before


class TestAuth:
    @pytest.mark.asyncio
    async def test_missing_key_rejected(self, client, monkeypatch):
        monkeypatch.setattr(settings, "api_key", "s3cret")
        resp = await client.get("/api/v1/purge/graph")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_valid_key_accepted(self, client, monkeypatch):
        monkeypatch.setattr(settings, "api_key", "s3cret")
        resp = await client.get("/api/v1/purge/graph", headers={"X-API-Key": "s3cret"})
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_health_exempt(self, client, monkeypatch):
        monkeypatch.setattr(settings, "api_key", "s3cret")
        assert (await client.get("/health")).status_code == 200

    @pytest.mark.asyncio
    async def test_unconfigured_key_outside_debug(self, client, monkeypatch):
        monkeypatch.setattr(settings, "debug", False)
        resp = await client.get("/api/v1/purge/graph")
        assert resp.status_code == 503
        assert "TABLE_PURGE_API_KEY" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_wrong_key_rejected(self, client, monkeypatch):
        monkeypatch.setattr(settings, "api_key", "s3cret")
        resp = await client.post(
            "/api/v1/purge/customers", json={}, headers={"X-API-Key": "guess"}
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_docs_outside_prefix_stay_open(self, client, monkeypatch):
        monkeypatch.setattr(settings, "api_key", "s3cret")
        monkeypatch.setattr(settings, "debug", False)
        assert (await client.get("/openapi.json")).status_code == 200
