"""
Watch set: which tickers are live, and what we know about each of them.

WatchSetManager owns one WatchEntry per canonical ticker. Tickers enter
through watch() (search, trending list, watchlist, detail view), get their
quote fetched in the background and are refreshed on the cadence the
RefreshPolicy picks for the current market state. Idle tickers are evicted
by cleanup() unless they are trending, watchlisted or currently displayed.

Fetch results are tagged with a generation number taken from a single
manager-wide counter. A result is applied only if its entry still exists
and still carries that generation, so a superseded or orphaned fetch can
never overwrite newer data or resurrect an evicted entry.

All methods must be called from the event loop thread.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from asxwatch.core.logging import get_logger
from asxwatch.domain.quote import CompanyData, QuoteData, TickerResult
from asxwatch.domain.ticker import (
    canonical_ticker,
    dedupe_tickers,
    is_valid_ticker,
    validate_ticker,
)

from .market_clock import MarketClock
from .refresh_policy import RefreshPolicy, RefreshWindow
from .resilience import RequestCoalescer
from .scheduler import WatchSetScheduler
from .ticker_client import TickerFetchClient
from .watchlist import WatchlistStore

logger = get_logger("services.watch_set")


@dataclass
class WatchEntry:
    """Tracked state of one ticker. Owned and mutated by WatchSetManager only."""

    ticker: str
    last_access_time: Optional[float]
    data: Optional[QuoteData] = None
    error: Optional[Exception] = None
    fetched_at: Optional[float] = None
    generation: int = 0
    in_flight: bool = False

    @property
    def has_result(self) -> bool:
        return self.data is not None or self.error is not None

    @property
    def is_loading(self) -> bool:
        return self.in_flight and not self.has_result


@dataclass(frozen=True)
class TickerState:
    """Read-only view of a WatchEntry."""

    ticker: str
    data: Optional[QuoteData]
    error: Optional[Exception]
    is_loading: bool
    is_fetching: bool
    is_stale: bool
    last_access_time: Optional[float]
    fetched_at: Optional[float]


class WatchSetManager:
    """Single-instance-per-application owner of the watch set."""

    def __init__(
        self,
        client: TickerFetchClient,
        *,
        market_clock: Optional[MarketClock] = None,
        refresh_policy: Optional[RefreshPolicy] = None,
        watchlist: Optional[WatchlistStore] = None,
        trending: Iterable[str] = (),
        idle_threshold: float = 3 * 60,
        cleanup_interval: float = 3 * 60,
        refresh_interval: float = 30,
        scheduler_enabled: bool = True,
        time_func: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._market_clock = market_clock or MarketClock()
        self._refresh_policy = refresh_policy or RefreshPolicy()
        self._watchlist = watchlist
        self._trending = dedupe_tickers(trending)
        self._idle_threshold = idle_threshold
        self._time = time_func

        self._entries: dict[str, WatchEntry] = {}
        self._generations = itertools.count(1)
        self._tasks: set[asyncio.Task] = set()
        self._global_error: Optional[Exception] = None
        self._currently_displayed: Optional[str] = None
        self._companies: dict[str, CompanyData] = {}
        self._company_coalescer = RequestCoalescer()
        self._started = False

        self.scheduler = WatchSetScheduler(
            self,
            cleanup_interval=cleanup_interval,
            refresh_interval=refresh_interval,
            enabled=scheduler_enabled,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Load the watchlist, watch trending + watchlisted tickers, start jobs."""
        if self._started:
            return
        self._started = True

        persisted: list[str] = []
        if self._watchlist is not None:
            persisted = await self._watchlist.load()

        self.watch([*self._trending, *persisted])
        self.scheduler.start()
        logger.info(f"Watch set started with {len(self._entries)} tickers")

    async def stop(self) -> None:
        """Stop periodic jobs and cancel outstanding fetches."""
        self.scheduler.stop()

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        for entry in self._entries.values():
            entry.in_flight = False

        if self._started:
            logger.info("Watch set stopped")
        self._started = False

    async def wait_idle(self) -> None:
        """Wait until no fetch is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # =========================================================================
    # Membership
    # =========================================================================

    def watch(self, tickers: Iterable[str], *, retry_failed: bool = True) -> list[str]:
        """
        Register tickers and fetch the ones not seen before.

        Re-watching refreshes the last access time. An entry with nothing in
        flight is fetched again when it has no result at all (its fetch was
        abandoned by a batch failure or by stop()), or, with ``retry_failed``,
        when its latest fetch failed; the standing error is cleared first.
        Read paths pass ``retry_failed=False`` so polling a failed ticker
        keeps reporting its error instead of refetching it.
        Tickers shorter than three alphanumeric characters are ignored.

        Returns the canonical tickers that were accepted.
        """
        now = self._time()
        accepted = dedupe_tickers(tickers)
        to_fetch: list[str] = []

        for ticker in accepted:
            entry = self._entries.get(ticker)
            if entry is None:
                self._entries[ticker] = WatchEntry(ticker=ticker, last_access_time=now)
                to_fetch.append(ticker)
                continue

            entry.last_access_time = now
            if entry.in_flight:
                continue
            if not entry.has_result:
                to_fetch.append(ticker)
            elif retry_failed and entry.error is not None:
                entry.error = None
                to_fetch.append(ticker)

        if to_fetch:
            self._dispatch(to_fetch)
        return accepted

    def unwatch(self, tickers: Iterable[str]) -> list[str]:
        """Remove tickers unconditionally. Their in-flight results are ignored."""
        removed = []
        for ticker in dedupe_tickers(tickers):
            if self._entries.pop(ticker, None) is not None:
                removed.append(ticker)
        if removed:
            logger.debug(f"Unwatched {', '.join(removed)}")
        return removed

    def refresh(self, tickers: Iterable[str]) -> list[str]:
        """
        Refetch watched tickers now, superseding any fetch in flight.

        A superseded fetch is not cancelled (it may share a batch with other
        tickers), its result is discarded on arrival.
        """
        watched = [t for t in dedupe_tickers(tickers) if t in self._entries]
        if watched:
            self._dispatch(watched)
        return watched

    def refresh_due(self) -> list[str]:
        """Refetch every ticker whose data is older than the refetch interval.

        Entries left without any result by an abandoned fetch are due too.
        Tickers with a fetch in flight are skipped, as are tickers with a
        standing error (they wait for an explicit re-watch).
        """
        window = self.refresh_window()
        interval = window.refetch_every.total_seconds()
        now = self._time()
        due = [
            entry.ticker
            for entry in self._entries.values()
            if not entry.in_flight
            and entry.error is None
            and (entry.fetched_at is None or now - entry.fetched_at >= interval)
        ]
        if due:
            logger.debug(f"Refreshing {len(due)} due tickers")
            self._dispatch(due)
        return due

    def cleanup(self) -> list[str]:
        """
        Evict idle tickers.

        A ticker is kept if it is trending, watchlisted or currently
        displayed (any one is enough), or if it was accessed within the idle
        threshold. Entries without an access time are evicted once not exempt.
        """
        exempt = set(self._trending)
        if self._watchlist is not None:
            exempt.update(self._watchlist.list())
        if self._currently_displayed:
            exempt.add(self._currently_displayed)

        now = self._time()
        evicted = []
        for ticker, entry in self._entries.items():
            if ticker in exempt:
                continue
            last = entry.last_access_time
            if last is None or now - last > self._idle_threshold:
                evicted.append(ticker)

        for ticker in evicted:
            del self._entries[ticker]

        if evicted:
            logger.info(f"Evicted {len(evicted)} idle tickers: {', '.join(evicted)}")
        return evicted

    def set_currently_displayed(self, ticker: Optional[str]) -> None:
        """Pin the ticker shown in the detail view so cleanup never evicts it."""
        if ticker is None or not is_valid_ticker(ticker):
            self._currently_displayed = None
        else:
            self._currently_displayed = canonical_ticker(ticker)

    # =========================================================================
    # Reads (never fetch)
    # =========================================================================

    @property
    def watched_tickers(self) -> list[str]:
        return list(self._entries)

    @property
    def trending(self) -> list[str]:
        return list(self._trending)

    @property
    def market_clock(self) -> MarketClock:
        return self._market_clock

    @property
    def currently_displayed(self) -> Optional[str]:
        return self._currently_displayed

    @property
    def is_loading(self) -> bool:
        return any(entry.is_loading for entry in self._entries.values())

    def get_quote_data(self, ticker: str) -> Optional[QuoteData]:
        entry = self._entries.get(canonical_ticker(ticker))
        return entry.data if entry is not None else None

    def is_ticker_loading(self, tickers: Iterable[str]) -> bool:
        """True if any of the given watched tickers is waiting on its first result."""
        for ticker in dedupe_tickers(tickers):
            entry = self._entries.get(ticker)
            if entry is not None and entry.is_loading:
                return True
        return False

    def error(self, ticker: str) -> Optional[Exception]:
        """
        The ticker's own error if its latest fetch failed. Otherwise, while
        the ticker has no entry or no result yet, the last batch-level error.
        """
        entry = self._entries.get(canonical_ticker(ticker))
        if entry is not None and entry.error is not None:
            return entry.error
        if entry is None or not entry.has_result:
            return self._global_error
        return None

    def refresh_window(self) -> RefreshWindow:
        return self._refresh_policy.window(self._market_clock.is_open())

    def is_stale(self, ticker: str) -> bool:
        entry = self._entries.get(canonical_ticker(ticker))
        if entry is None or entry.fetched_at is None:
            return True
        stale_after = self.refresh_window().stale_after.total_seconds()
        return self._time() - entry.fetched_at >= stale_after

    def snapshot(self, ticker: str) -> Optional[TickerState]:
        entry = self._entries.get(canonical_ticker(ticker))
        if entry is None:
            return None
        return TickerState(
            ticker=entry.ticker,
            data=entry.data,
            error=self.error(entry.ticker),
            is_loading=entry.is_loading,
            is_fetching=entry.in_flight,
            is_stale=self.is_stale(entry.ticker),
            last_access_time=entry.last_access_time,
            fetched_at=entry.fetched_at,
        )

    def __contains__(self, ticker: str) -> bool:
        return canonical_ticker(ticker) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # =========================================================================
    # Company information
    # =========================================================================

    async def company(self, ticker: str) -> CompanyData:
        """Company information, fetched once per ticker and then served from memory.

        Concurrent requests for the same ticker share one fetch. Failures
        propagate and are not cached.
        """
        ticker = validate_ticker(ticker)
        cached = self._companies.get(ticker)
        if cached is not None:
            logger.debug(f"Company cache hit: {ticker}")
            return cached

        data = await self._company_coalescer.execute(
            f"company:{ticker}", lambda: self._client.fetch_company(ticker)
        )
        self._companies[ticker] = data
        return data

    # =========================================================================
    # Fetching
    # =========================================================================

    def _dispatch(self, tickers: list[str]) -> None:
        batch: list[tuple[str, int]] = []
        for ticker in tickers:
            entry = self._entries[ticker]
            entry.generation = next(self._generations)
            entry.in_flight = True
            batch.append((ticker, entry.generation))

        task = asyncio.get_running_loop().create_task(self._run_batch(batch))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Dispatched fetch for {', '.join(tickers)}")

    async def _run_batch(self, batch: list[tuple[str, int]]) -> None:
        tickers = [ticker for ticker, _ in batch]
        try:
            results = await self._client.fetch_many(tickers)
        except asyncio.CancelledError:
            self._abandon(batch)
            raise
        except Exception as e:
            logger.warning(f"Batch fetch failed for {', '.join(tickers)}: {e}")
            self._global_error = e
            self._abandon(batch)
            return

        self._global_error = None
        now = self._time()
        for (ticker, generation), result in zip(batch, results):
            self._apply(ticker, generation, result, now)

    def _apply(
        self, ticker: str, generation: int, result: TickerResult, now: float
    ) -> None:
        entry = self._entries.get(ticker)
        if entry is None:
            logger.debug(f"Dropping result for unwatched ticker {ticker}")
            return
        if entry.generation != generation:
            logger.debug(f"Dropping superseded result for {ticker}")
            return

        entry.in_flight = False
        entry.fetched_at = now
        if result.error is not None:
            entry.data = None
            entry.error = result.error
            logger.warning(f"Fetch failed for {ticker}: {result.error}")
        else:
            entry.data = result.data
            entry.error = None

    def _abandon(self, batch: list[tuple[str, int]]) -> None:
        for ticker, generation in batch:
            entry = self._entries.get(ticker)
            if entry is not None and entry.generation == generation:
                entry.in_flight = False
