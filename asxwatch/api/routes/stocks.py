"""Stock catalogue endpoints: search and trending."""

from __future__ import annotations

from typing import Iterable

from fastapi import APIRouter, Depends, Query

from asxwatch.api.deps import get_manager, get_watchlist
from asxwatch.domain.stocks import POPULAR_STOCKS, Stock, search_stocks
from asxwatch.schemas.tickers import StockListResponse, StockSummary
from asxwatch.services import WatchlistStore, WatchSetManager

from .tickers import build_snapshot


router = APIRouter(prefix="/stocks")

_NAMES = {stock.ticker: stock.name for stock in POPULAR_STOCKS}


def _summaries(
    stocks: Iterable[Stock], manager: WatchSetManager, watchlist: WatchlistStore
) -> list[StockSummary]:
    return [
        StockSummary(
            ticker=stock.ticker,
            name=stock.name,
            snapshot=build_snapshot(manager, watchlist, stock.ticker)
            if stock.ticker in manager
            else None,
        )
        for stock in stocks
    ]


@router.get(
    "/search",
    response_model=StockListResponse,
    summary="Search popular stocks",
    description="Case-insensitive match on ticker or company name.",
)
async def search(
    q: str = Query("", max_length=50, description="Search text"),
    watch: bool = Query(False, description="Also watch every match"),
    manager: WatchSetManager = Depends(get_manager),
    watchlist: WatchlistStore = Depends(get_watchlist),
) -> StockListResponse:
    matches = search_stocks(q)
    if watch and matches:
        manager.watch((stock.ticker for stock in matches), retry_failed=False)
    return StockListResponse(stocks=_summaries(matches, manager, watchlist))


@router.get(
    "/trending",
    response_model=StockListResponse,
    summary="Trending stocks with their latest quotes",
)
async def trending(
    manager: WatchSetManager = Depends(get_manager),
    watchlist: WatchlistStore = Depends(get_watchlist),
) -> StockListResponse:
    tickers = manager.watch(manager.trending, retry_failed=False)
    stocks = [Stock(ticker, _NAMES.get(ticker, ticker)) for ticker in tickers]
    return StockListResponse(stocks=_summaries(stocks, manager, watchlist))
