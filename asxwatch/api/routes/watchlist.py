"""Watchlist endpoints. Adding a ticker also watches it."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from asxwatch.api.deps import get_manager, get_watchlist
from asxwatch.core.logging import get_logger
from asxwatch.domain.ticker import validate_ticker
from asxwatch.schemas.watchlist import WatchlistChangeResponse, WatchlistResponse
from asxwatch.services import WatchlistStore, WatchSetManager


logger = get_logger("api.watchlist")

router = APIRouter(prefix="/watchlist")


@router.get("", response_model=WatchlistResponse, summary="List watchlisted tickers")
async def list_watchlist(
    watchlist: WatchlistStore = Depends(get_watchlist),
) -> WatchlistResponse:
    return WatchlistResponse(tickers=watchlist.list())


@router.post(
    "/{ticker}",
    response_model=WatchlistChangeResponse,
    summary="Add to watchlist",
)
async def add_to_watchlist(
    ticker: str,
    watchlist: WatchlistStore = Depends(get_watchlist),
    manager: WatchSetManager = Depends(get_manager),
) -> WatchlistChangeResponse:
    ticker = validate_ticker(ticker)
    changed = await watchlist.add(ticker)
    manager.watch([ticker])
    if changed:
        logger.info(f"Added {ticker} to watchlist")
    return WatchlistChangeResponse(
        ticker=ticker, watchlisted=True, changed=changed, tickers=watchlist.list()
    )


@router.delete(
    "/{ticker}",
    response_model=WatchlistChangeResponse,
    summary="Remove from watchlist",
    description="The ticker stays watched until it goes idle and is evicted.",
)
async def remove_from_watchlist(
    ticker: str,
    watchlist: WatchlistStore = Depends(get_watchlist),
) -> WatchlistChangeResponse:
    ticker = validate_ticker(ticker)
    changed = await watchlist.remove(ticker)
    if changed:
        logger.info(f"Removed {ticker} from watchlist")
    return WatchlistChangeResponse(
        ticker=ticker, watchlisted=False, changed=changed, tickers=watchlist.list()
    )


@router.post(
    "/{ticker}/toggle",
    response_model=WatchlistChangeResponse,
    summary="Toggle watchlist membership",
)
async def toggle_watchlist(
    ticker: str,
    watchlist: WatchlistStore = Depends(get_watchlist),
    manager: WatchSetManager = Depends(get_manager),
) -> WatchlistChangeResponse:
    ticker = validate_ticker(ticker)
    watchlisted = await watchlist.toggle(ticker)
    if watchlisted:
        manager.watch([ticker])
    return WatchlistChangeResponse(
        ticker=ticker, watchlisted=watchlisted, changed=True, tickers=watchlist.list()
    )


@router.delete("", response_model=WatchlistResponse, summary="Clear the watchlist")
async def clear_watchlist(
    watchlist: WatchlistStore = Depends(get_watchlist),
) -> WatchlistResponse:
    await watchlist.clear()
    return WatchlistResponse(tickers=watchlist.list())
