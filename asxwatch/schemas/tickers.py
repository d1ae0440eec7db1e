"""Ticker, quote and market schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from asxwatch.domain.formatting import (
    format_currency,
    format_market_value,
    format_number,
    format_percent_from_high,
    format_percentage,
)
from asxwatch.domain.quote import QuoteData

from .common import ErrorResponse


class TickerListRequest(BaseModel):
    """Body for watch / unwatch."""

    tickers: List[str] = Field(..., description="Ticker symbols, any case")


class DisplayedTickerRequest(BaseModel):
    """Ticker shown in the detail view, or null when none is."""

    ticker: Optional[str] = None


class FormattedQuote(BaseModel):
    """Display strings for the headline quote values."""

    last: Optional[str] = None
    change: Optional[str] = None
    percent_change: Optional[str] = None
    market_value: Optional[str] = None
    volume: Optional[str] = None
    percent_from_high: Optional[str] = None

    @classmethod
    def from_quote(cls, data: QuoteData) -> "FormattedQuote":
        q = data.quote
        from_high = data.percent_from_high
        return cls(
            last=format_currency(q.cf_last) if q.cf_last is not None else None,
            change=format_currency(q.cf_netchng) if q.cf_netchng is not None else None,
            percent_change=format_percentage(q.pctchng) if q.pctchng is not None else None,
            market_value=format_market_value(q.mkt_value) if q.mkt_value is not None else None,
            volume=format_number(q.cf_volume) if q.cf_volume is not None else None,
            percent_from_high=(
                format_percent_from_high(from_high) if from_high is not None else None
            ),
        )


class TickerSnapshot(BaseModel):
    """What is currently known about one watched ticker."""

    ticker: str
    data: Optional[QuoteData] = None
    formatted: Optional[FormattedQuote] = None
    error: Optional[ErrorResponse] = None
    is_loading: bool = Field(False, description="Waiting on the first result")
    is_fetching: bool = Field(False, description="A fetch is in flight")
    is_stale: bool = True
    watchlisted: bool = False


class WatchResponse(BaseModel):
    accepted: List[str] = Field(default_factory=list)
    watched: List[str] = Field(default_factory=list)


class UnwatchResponse(BaseModel):
    removed: List[str] = Field(default_factory=list)
    watched: List[str] = Field(default_factory=list)


class RefreshResponse(BaseModel):
    refreshed: List[str] = Field(default_factory=list)


class WatchedTickersResponse(BaseModel):
    tickers: List[str] = Field(default_factory=list)
    trending: List[str] = Field(default_factory=list)
    currently_displayed: Optional[str] = None
    is_loading: bool = False


class CleanupResponse(BaseModel):
    evicted: List[str] = Field(default_factory=list)
    watched: List[str] = Field(default_factory=list)


class MarketStatusResponse(BaseModel):
    """Market state and the refresh cadence that follows from it."""

    is_open: bool
    local_time: datetime
    timezone: str
    stale_after_seconds: int
    refetch_every_seconds: int


class StockSummary(BaseModel):
    ticker: str
    name: str
    snapshot: Optional[TickerSnapshot] = None


class StockListResponse(BaseModel):
    stocks: List[StockSummary] = Field(default_factory=list)
