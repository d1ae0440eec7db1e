"""Popular ASX listings used for the trending list and search suggestions."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Stock:
    ticker: str
    name: str


POPULAR_STOCKS: tuple[Stock, ...] = (
    Stock("CBA", "Commonwealth Bank of Australia"),
    Stock("BHP", "BHP Group"),
    Stock("NAB", "National Australia Bank"),
    Stock("WBC", "Westpac Banking Corporation"),
    Stock("WES", "Wesfarmers"),
    Stock("CSL", "CSL"),
    Stock("ANZ", "Australia and New Zealand Banking Group"),
    Stock("MQG", "Macquarie Group"),
    Stock("GMG", "Goodman Group"),
    Stock("FMG", "Fortescue Metals Group"),
    Stock("TLS", "Telstra Corporation"),
    Stock("WDS", "Woodside Energy Group"),
    Stock("TCL", "Transurban Group"),
    Stock("RIO", "RIO Tinto"),
    Stock("ALL", "Aristocrat Leisure"),
    Stock("SIG", "Sigma Healthcare"),
    Stock("BXB", "Brambles"),
    Stock("WOW", "Woolworths Group"),
    Stock("COL", "Coles Group"),
    Stock("WTC", "Wisetech Global"),
)


def trending_tickers(count: int = 6) -> list[str]:
    """The first ``count`` popular tickers, in catalogue order."""
    return [stock.ticker for stock in POPULAR_STOCKS[:count]]


def search_stocks(query: str) -> list[Stock]:
    """Case-insensitive substring match on ticker or company name.

    An empty query returns the whole catalogue.
    """
    needle = query.strip().lower()
    if not needle:
        return list(POPULAR_STOCKS)
    return [
        stock
        for stock in POPULAR_STOCKS
        if needle in stock.ticker.lower() or needle in stock.name.lower()
    ]
