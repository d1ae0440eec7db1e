"""Domain models and pure helpers.

Usage:
    from asxwatch.domain import QuoteData, canonical_ticker

    ticker = canonical_ticker(" cba ")  # "CBA"
"""

from asxwatch.domain.quote import (
    CompanyData,
    Quote,
    QuoteData,
    TickerResult,
)
from asxwatch.domain.stocks import (
    POPULAR_STOCKS,
    Stock,
    search_stocks,
    trending_tickers,
)
from asxwatch.domain.ticker import (
    MIN_TICKER_LENGTH,
    canonical_ticker,
    dedupe_tickers,
    is_valid_ticker,
    sanitize_ticker_input,
    validate_ticker,
)

__all__ = [
    # Quotes
    "CompanyData",
    "Quote",
    "QuoteData",
    "TickerResult",
    # Stocks
    "POPULAR_STOCKS",
    "Stock",
    "search_stocks",
    "trending_tickers",
    # Tickers
    "MIN_TICKER_LENGTH",
    "canonical_ticker",
    "dedupe_tickers",
    "is_valid_ticker",
    "sanitize_ticker_input",
    "validate_ticker",
]
