"""Watch set endpoints: watch, unwatch, refresh and read ticker state."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from asxwatch.api.deps import get_manager, get_watchlist
from asxwatch.core.logging import get_logger
from asxwatch.domain.quote import CompanyData
from asxwatch.domain.ticker import canonical_ticker, validate_ticker
from asxwatch.schemas.common import ErrorResponse
from asxwatch.schemas.tickers import (
    CleanupResponse,
    DisplayedTickerRequest,
    FormattedQuote,
    RefreshResponse,
    TickerListRequest,
    TickerSnapshot,
    UnwatchResponse,
    WatchedTickersResponse,
    WatchResponse,
)
from asxwatch.services import WatchlistStore, WatchSetManager


logger = get_logger("api.tickers")

router = APIRouter(prefix="/tickers")


def build_snapshot(
    manager: WatchSetManager, watchlist: WatchlistStore, ticker: str
) -> TickerSnapshot:
    """Snapshot of ``ticker`` as the manager currently sees it. Never fetches."""
    ticker = canonical_ticker(ticker)
    state = manager.snapshot(ticker)
    if state is None:
        error = manager.error(ticker)
        return TickerSnapshot(
            ticker=ticker,
            error=ErrorResponse.from_exception(error) if error else None,
            watchlisted=watchlist.contains(ticker),
        )

    return TickerSnapshot(
        ticker=state.ticker,
        data=state.data,
        formatted=FormattedQuote.from_quote(state.data) if state.data else None,
        error=ErrorResponse.from_exception(state.error) if state.error else None,
        is_loading=state.is_loading,
        is_fetching=state.is_fetching,
        is_stale=state.is_stale,
        watchlisted=watchlist.contains(state.ticker),
    )


# =============================================================================
# WATCH SET
# =============================================================================


@router.get(
    "",
    response_model=WatchedTickersResponse,
    summary="List watched tickers",
)
async def list_watched(
    manager: WatchSetManager = Depends(get_manager),
) -> WatchedTickersResponse:
    return WatchedTickersResponse(
        tickers=manager.watched_tickers,
        trending=manager.trending,
        currently_displayed=manager.currently_displayed,
        is_loading=manager.is_loading,
    )


@router.post(
    "/watch",
    response_model=WatchResponse,
    summary="Watch tickers",
    description="Add tickers to the watch set. New tickers are fetched in the background.",
)
async def watch_tickers(
    request: TickerListRequest,
    manager: WatchSetManager = Depends(get_manager),
) -> WatchResponse:
    accepted = manager.watch(request.tickers)
    return WatchResponse(accepted=accepted, watched=manager.watched_tickers)


@router.post(
    "/unwatch",
    response_model=UnwatchResponse,
    summary="Unwatch tickers",
)
async def unwatch_tickers(
    request: TickerListRequest,
    manager: WatchSetManager = Depends(get_manager),
) -> UnwatchResponse:
    removed = manager.unwatch(request.tickers)
    return UnwatchResponse(removed=removed, watched=manager.watched_tickers)


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    summary="Evict idle tickers now",
)
async def cleanup(
    manager: WatchSetManager = Depends(get_manager),
) -> CleanupResponse:
    evicted = manager.cleanup()
    return CleanupResponse(evicted=evicted, watched=manager.watched_tickers)


@router.put(
    "/displayed",
    response_model=WatchedTickersResponse,
    summary="Set the ticker shown in the detail view",
    description="The displayed ticker is never evicted. Send null to clear it.",
)
async def set_displayed(
    request: DisplayedTickerRequest,
    manager: WatchSetManager = Depends(get_manager),
) -> WatchedTickersResponse:
    manager.set_currently_displayed(request.ticker)
    if manager.currently_displayed:
        manager.watch([manager.currently_displayed])
    return await list_watched(manager)


# =============================================================================
# SINGLE TICKER
# =============================================================================


@router.get(
    "/{ticker}",
    response_model=TickerSnapshot,
    summary="Get ticker state",
    description="Watch the ticker (refreshing its access time) and return what is known about it. "
    "A failed ticker keeps reporting its error; use POST /tickers/watch or /refresh to retry.",
)
async def get_ticker(
    ticker: str,
    manager: WatchSetManager = Depends(get_manager),
    watchlist: WatchlistStore = Depends(get_watchlist),
) -> TickerSnapshot:
    ticker = validate_ticker(ticker)
    manager.watch([ticker], retry_failed=False)
    return build_snapshot(manager, watchlist, ticker)


@router.post(
    "/{ticker}/refresh",
    response_model=RefreshResponse,
    summary="Refetch a watched ticker now",
)
async def refresh_ticker(
    ticker: str,
    manager: WatchSetManager = Depends(get_manager),
) -> RefreshResponse:
    ticker = validate_ticker(ticker)
    return RefreshResponse(refreshed=manager.refresh([ticker]))


@router.get(
    "/{ticker}/company",
    response_model=CompanyData,
    summary="Company information",
    description="Fetched once per ticker, then served from memory.",
)
async def get_company(
    ticker: str,
    manager: WatchSetManager = Depends(get_manager),
) -> CompanyData:
    return await manager.company(ticker)
