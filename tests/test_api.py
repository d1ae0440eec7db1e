"""Tests for the HTTP API against mocked market data and upstream services."""

from __future__ import annotations

import json
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import status
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from asxwatch.api.app import create_app
from asxwatch.core.config import Settings
from asxwatch.services import Services, build_services
from asxwatch.storage import MemoryStore

UPSTREAM_REQUESTS: list[httpx.Request] = []
QUOTE_REQUESTS: list[str] = []


def market_handler(request: httpx.Request) -> httpx.Response:
    """Fake market data API (via the client) and fake upstream (via the proxy)."""
    if request.url.host == "upstream.test":
        UPSTREAM_REQUESTS.append(request)
        if request.url.path == "/api/broken":
            raise httpx.ConnectError("refused", request=request)
        if request.url.path == "/api/missing":
            return httpx.Response(404)
        if request.method == "POST":
            return httpx.Response(200, json={"echo": json.loads(request.content)})
        return httpx.Response(200, json={"path": request.url.path, "params": dict(request.url.params)})

    ticker = request.url.params.get("listing_key") or request.url.params.get("ticker")
    if request.url.path.endswith("/quotes"):
        QUOTE_REQUESTS.append(ticker)
    if ticker == "XYZ":
        return httpx.Response(404)
    if request.url.path.endswith("/company_information"):
        return httpx.Response(200, json={"ticker": ticker, "company_info": f"{ticker} is a company"})
    return httpx.Response(
        200,
        json={
            "symbol": ticker,
            "quote": {"cf_last": 120.5, "pctchng": 1.25, "mkt_value": 201_500_000_000, "yrhigh": 130.0},
        },
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        market_data_base_url="http://market.test",
        upstream_api_base_url="http://upstream.test/",
        api_key="test-key",
        storage_backend="memory",
        scheduler_enabled=False,
        trending_count=2,
        fetch_max_attempts=1,
        log_format="text",
    )


@pytest_asyncio.fixture
async def services(settings) -> AsyncGenerator[Services, None]:
    UPSTREAM_REQUESTS.clear()
    QUOTE_REQUESTS.clear()
    services = build_services(
        settings, transport=httpx.MockTransport(market_handler), store=MemoryStore()
    )
    await services.start()
    await services.manager.wait_idle()
    yield services
    await services.stop()


@pytest_asyncio.fixture
async def api(services) -> AsyncGenerator[AsyncClient, None]:
    """Async client for the app. Lifespan is driven by the services fixture."""
    app = create_app(services=services)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# =============================================================================
# Health and market
# =============================================================================


class TestHealthEndpoint:
    """Tests for GET /health."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, api):
        response = await api.get("/health")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"] == {"storage": True, "scheduler": True}
        assert "version" in data

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, api):
        response = await api.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


class TestMarketStatus:
    """Tests for GET /market/status."""

    @pytest.mark.asyncio
    async def test_market_status_fields(self, api):
        response = await api.get("/market/status")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert isinstance(data["is_open"], bool)
        assert data["timezone"] == "Australia/Sydney"
        if data["is_open"]:
            assert data["refetch_every_seconds"] == 60
        else:
            assert data["refetch_every_seconds"] == 3600


# =============================================================================
# Tickers
# =============================================================================


class TestTickerEndpoints:
    """Tests for /tickers."""

    @pytest.mark.asyncio
    async def test_trending_watched_on_startup(self, api):
        response = await api.get("/tickers")
        data = response.json()
        assert data["tickers"] == ["CBA", "BHP"]
        assert data["trending"] == ["CBA", "BHP"]
        assert data["is_loading"] is False

    @pytest.mark.asyncio
    async def test_get_ticker_watches_and_returns_snapshot(self, api, services):
        first = await api.get("/tickers/nab")
        assert first.status_code == status.HTTP_200_OK
        assert first.json()["ticker"] == "NAB"

        await services.manager.wait_idle()
        data = (await api.get("/tickers/NAB")).json()

        assert data["data"]["symbol"] == "NAB"
        assert data["formatted"]["last"] == "$120.50"
        assert data["formatted"]["percent_change"] == "+1.25%"
        assert data["formatted"]["market_value"] == "$201.50B"
        assert data["is_loading"] is False
        assert data["is_stale"] is False
        assert data["error"] is None

    @pytest.mark.asyncio
    async def test_invalid_ticker_rejected(self, api):
        response = await api.get("/tickers/ab")
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["message"] == "Please enter a valid ticker (minimum 3 alphanumeric characters)"

    @pytest.mark.asyncio
    async def test_unknown_ticker_reports_not_found(self, api, services):
        await api.get("/tickers/XYZ")
        await services.manager.wait_idle()

        data = (await api.get("/tickers/XYZ")).json()
        assert data["data"] is None
        assert data["error"]["error"] == "NOT_FOUND"
        assert data["error"]["status"] == 404
        assert data["error"]["message"] == "Quote data for ticker 'XYZ' not found"
        assert QUOTE_REQUESTS.count("XYZ") == 1

    @pytest.mark.asyncio
    async def test_explicit_watch_retries_failed_ticker(self, api, services):
        await api.get("/tickers/XYZ")
        await services.manager.wait_idle()

        response = await api.post("/tickers/watch", json={"tickers": ["XYZ"]})
        assert response.json()["accepted"] == ["XYZ"]
        await services.manager.wait_idle()

        assert QUOTE_REQUESTS.count("XYZ") == 2

    @pytest.mark.asyncio
    async def test_watch_and_unwatch(self, api):
        response = await api.post("/tickers/watch", json={"tickers": ["cba", "nab", "x"]})
        data = response.json()
        assert data["accepted"] == ["CBA", "NAB"]
        assert data["watched"] == ["CBA", "BHP", "NAB"]

        response = await api.post("/tickers/unwatch", json={"tickers": ["nab"]})
        data = response.json()
        assert data["removed"] == ["NAB"]
        assert data["watched"] == ["CBA", "BHP"]

    @pytest.mark.asyncio
    async def test_refresh(self, api):
        response = await api.post("/tickers/cba/refresh")
        assert response.json() == {"refreshed": ["CBA"]}

        response = await api.post("/tickers/wes/refresh")
        assert response.json() == {"refreshed": []}

    @pytest.mark.asyncio
    async def test_company(self, api):
        response = await api.get("/tickers/cba/company")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"ticker": "CBA", "company_info": "CBA is a company"}

    @pytest.mark.asyncio
    async def test_company_not_found(self, api):
        response = await api.get("/tickers/XYZ/company")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        body = response.json()
        assert body["error"] == "NOT_FOUND"
        assert body["message"] == "Ticker 'XYZ' not found or may be delisted"

    @pytest.mark.asyncio
    async def test_displayed_ticker(self, api):
        response = await api.put("/tickers/displayed", json={"ticker": "wes"})
        data = response.json()
        assert data["currently_displayed"] == "WES"
        assert "WES" in data["tickers"]

        response = await api.put("/tickers/displayed", json={"ticker": None})
        assert response.json()["currently_displayed"] is None

    @pytest.mark.asyncio
    async def test_cleanup_keeps_recent_tickers(self, api):
        await api.post("/tickers/watch", json={"tickers": ["NAB"]})
        response = await api.post("/tickers/cleanup")
        data = response.json()
        assert data["evicted"] == []
        assert "NAB" in data["watched"]


# =============================================================================
# Stocks
# =============================================================================


class TestStockEndpoints:
    """Tests for /stocks."""

    @pytest.mark.asyncio
    async def test_trending(self, api):
        response = await api.get("/stocks/trending")
        stocks = response.json()["stocks"]

        assert [s["ticker"] for s in stocks] == ["CBA", "BHP"]
        assert stocks[0]["name"] == "Commonwealth Bank of Australia"
        assert stocks[0]["snapshot"]["data"]["symbol"] == "CBA"

    @pytest.mark.asyncio
    async def test_search_matches_name(self, api):
        response = await api.get("/stocks/search", params={"q": "bank"})
        tickers = [s["ticker"] for s in response.json()["stocks"]]
        assert {"CBA", "NAB", "WBC", "ANZ"} <= set(tickers)

    @pytest.mark.asyncio
    async def test_search_does_not_watch_by_default(self, api, services):
        await api.get("/stocks/search", params={"q": "wes"})
        assert "WES" not in services.manager

    @pytest.mark.asyncio
    async def test_search_can_watch_matches(self, api, services):
        response = await api.get("/stocks/search", params={"q": "wesfarmers", "watch": "true"})
        assert [s["ticker"] for s in response.json()["stocks"]] == ["WES"]
        assert "WES" in services.manager


# =============================================================================
# Watchlist
# =============================================================================


class TestWatchlistEndpoints:
    """Tests for /watchlist."""

    @pytest.mark.asyncio
    async def test_add_persists_and_watches(self, api, services):
        response = await api.post("/watchlist/wes")
        data = response.json()

        assert data == {"ticker": "WES", "watchlisted": True, "changed": True, "tickers": ["WES"]}
        assert await services.store.get("asx-watchlist") == '["WES"]'
        assert "WES" in services.manager

    @pytest.mark.asyncio
    async def test_add_twice_is_noop(self, api):
        await api.post("/watchlist/cba")
        response = await api.post("/watchlist/CBA")
        assert response.json()["changed"] is False
        assert (await api.get("/watchlist")).json() == {"tickers": ["CBA"]}

    @pytest.mark.asyncio
    async def test_toggle_round_trip(self, api, services):
        first = (await api.post("/watchlist/cba/toggle")).json()
        assert first["watchlisted"] is True
        assert await services.store.get("asx-watchlist") == '["CBA"]'

        second = (await api.post("/watchlist/cba/toggle")).json()
        assert second["watchlisted"] is False
        assert await services.store.get("asx-watchlist") == "[]"

    @pytest.mark.asyncio
    async def test_remove_missing(self, api):
        response = await api.delete("/watchlist/nab")
        assert response.json()["changed"] is False

    @pytest.mark.asyncio
    async def test_clear(self, api):
        await api.post("/watchlist/cba")
        await api.post("/watchlist/nab")

        response = await api.delete("/watchlist")
        assert response.json() == {"tickers": []}

    @pytest.mark.asyncio
    async def test_invalid_ticker(self, api):
        response = await api.post("/watchlist/x")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_snapshot_reports_membership(self, api, services):
        await api.post("/watchlist/nab")
        await services.manager.wait_idle()

        data = (await api.get("/tickers/nab")).json()
        assert data["watchlisted"] is True


# =============================================================================
# Proxy
# =============================================================================


class TestProxy:
    """Tests for /api/proxy."""

    @pytest.mark.asyncio
    async def test_forwards_with_bearer_token(self, api):
        response = await api.get(
            "/api/proxy/api/market_data/quotes",
            params={"market_key": "asx", "listing_key": "CBA"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "path": "/api/market_data/quotes",
            "params": {"market_key": "asx", "listing_key": "CBA"},
        }
        forwarded = UPSTREAM_REQUESTS[-1]
        assert forwarded.headers["Authorization"] == "Bearer test-key"

    @pytest.mark.asyncio
    async def test_upstream_error_status_passed_through(self, api):
        response = await api.get("/api/proxy/api/missing")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"error": "API request failed: Not Found"}

    @pytest.mark.asyncio
    async def test_transport_failure_is_500(self, api):
        response = await api.get("/api/proxy/api/broken")
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Internal server error"}

    @pytest.mark.asyncio
    async def test_post_forwards_body(self, api):
        response = await api.post("/api/proxy/api/echo", json={"a": 1})
        assert response.json() == {"echo": {"a": 1}}
        assert UPSTREAM_REQUESTS[-1].method == "POST"


# =============================================================================
# Lifespan
# =============================================================================


class TestLifespan:
    """The app's lifespan starts and stops the services it was given."""

    def test_lifespan_starts_watch_set(self, settings):
        services = build_services(
            settings, transport=httpx.MockTransport(market_handler), store=MemoryStore()
        )
        app = create_app(services=services)

        with TestClient(app) as client:
            response = client.get("/tickers")
            assert response.json()["tickers"] == ["CBA", "BHP"]

        assert not services.manager.scheduler.running
