"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio

from asxwatch.core.exceptions import NotFoundError
from asxwatch.domain.quote import CompanyData, Quote, QuoteData, TickerResult
from asxwatch.services.market_clock import MarketClock
from asxwatch.services.watch_set import WatchSetManager
from asxwatch.services.watchlist import WatchlistStore
from asxwatch.storage import MemoryStore, PersistentSet


pytest_plugins = ["pytest_asyncio"]


def make_quote(ticker: str, last: float = 100.0, **fields) -> QuoteData:
    return QuoteData(symbol=ticker, quote=Quote(cf_last=last, **fields))


class FakeClock:
    """Controllable monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FixedMarketClock(MarketClock):
    """Market clock whose open flag is set by the test."""

    def __init__(self, market_open: bool = True):
        super().__init__()
        self.market_open = market_open

    def is_open(self, now=None) -> bool:
        return self.market_open


class FakeTickerClient:
    """
    Stand-in for TickerFetchClient.

    By default every batch resolves immediately. With ``hold = True`` each
    batch parks on a future until the test calls ``release(index)``, which
    lets tests control the order in which overlapping fetches complete.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self.quotes: dict[str, QuoteData] = {}
        self.errors: dict[str, Exception] = {}
        self.batch_error: Optional[Exception] = None
        self.hold = False
        self.pending: list[tuple[list[str], asyncio.Future]] = []

        self.company_calls: list[str] = []
        self.company_errors: dict[str, Exception] = {}
        self.company_delay = 0.0

    def _results(
        self, tickers: list[str], overrides: Optional[dict[str, QuoteData]] = None
    ) -> list[TickerResult]:
        results = []
        for ticker in tickers:
            if overrides and ticker in overrides:
                results.append(TickerResult(ticker=ticker, data=overrides[ticker]))
            elif ticker in self.errors:
                results.append(TickerResult(ticker=ticker, error=self.errors[ticker]))
            else:
                data = self.quotes.get(ticker) or make_quote(ticker)
                results.append(TickerResult(ticker=ticker, data=data))
        return results

    async def fetch_many(self, tickers) -> list[TickerResult]:
        tickers = list(tickers)
        self.calls.append(tickers)
        if self.hold:
            future = asyncio.get_running_loop().create_future()
            self.pending.append((tickers, future))
            return await future
        if self.batch_error is not None:
            raise self.batch_error
        return self._results(tickers)

    def release(self, index: int, overrides: Optional[dict[str, QuoteData]] = None) -> None:
        tickers, future = self.pending[index]
        future.set_result(self._results(tickers, overrides))

    async def wait_for_calls(self, count: int) -> None:
        for _ in range(100):
            if len(self.calls) >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} fetch calls, saw {len(self.calls)}")

    async def fetch_company(self, ticker: str) -> CompanyData:
        self.company_calls.append(ticker)
        if self.company_delay:
            await asyncio.sleep(self.company_delay)
        if ticker in self.company_errors:
            raise self.company_errors[ticker]
        return CompanyData(ticker=ticker, company_info=f"{ticker} business description")

    async def aclose(self) -> None:
        return None


class FailingStore(MemoryStore):
    """Store whose reads and writes always fail."""

    async def get(self, key):
        raise ConnectionError("storage unavailable")

    async def set(self, key, value):
        raise ConnectionError("storage unavailable")

    async def remove(self, key):
        raise ConnectionError("storage unavailable")


def not_found(ticker: str) -> NotFoundError:
    return NotFoundError(f"Quote data for ticker '{ticker}' not found", ticker=ticker)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_client() -> FakeTickerClient:
    return FakeTickerClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def market() -> FixedMarketClock:
    return FixedMarketClock(market_open=True)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def watchlist(memory_store: MemoryStore) -> WatchlistStore:
    return WatchlistStore(PersistentSet(memory_store))


@pytest_asyncio.fixture
async def make_manager(fake_client, clock, market) -> AsyncGenerator:
    """Factory for WatchSetManagers wired to the fakes; stops them after the test."""
    created: list[WatchSetManager] = []

    def factory(**kwargs) -> WatchSetManager:
        kwargs.setdefault("market_clock", market)
        kwargs.setdefault("time_func", clock)
        kwargs.setdefault("scheduler_enabled", False)
        manager = WatchSetManager(fake_client, **kwargs)
        created.append(manager)
        return manager

    yield factory

    for manager in created:
        await manager.stop()


@pytest_asyncio.fixture
async def manager(make_manager) -> WatchSetManager:
    return make_manager()
