"""API route modules."""

from . import health, market, proxy, stocks, tickers, watchlist


__all__ = [
    "health",
    "market",
    "proxy",
    "stocks",
    "tickers",
    "watchlist",
]
