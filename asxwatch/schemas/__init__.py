"""API request and response schemas."""

from .common import ErrorResponse, HealthResponse
from .tickers import (
    CleanupResponse,
    DisplayedTickerRequest,
    FormattedQuote,
    MarketStatusResponse,
    RefreshResponse,
    StockListResponse,
    StockSummary,
    TickerListRequest,
    TickerSnapshot,
    UnwatchResponse,
    WatchedTickersResponse,
    WatchResponse,
)
from .watchlist import WatchlistChangeResponse, WatchlistResponse


__all__ = [
    "CleanupResponse",
    "DisplayedTickerRequest",
    "ErrorResponse",
    "FormattedQuote",
    "HealthResponse",
    "MarketStatusResponse",
    "RefreshResponse",
    "StockListResponse",
    "StockSummary",
    "TickerListRequest",
    "TickerSnapshot",
    "UnwatchResponse",
    "WatchResponse",
    "WatchedTickersResponse",
    "WatchlistChangeResponse",
    "WatchlistResponse",
]
