"""Quote and company domain models.

Shapes of the JSON bodies returned by the market data API. All numeric
fields are optional so partial payloads still parse.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field


class Quote(BaseModel):
    """Price block of a quote response."""

    mkt_value: float | None = Field(None, description="Market capitalisation")
    cf_last: float | None = Field(None, description="Last traded price")
    cf_open: float | None = Field(None, description="Opening price")
    cf_low: float | None = Field(None, description="Day low")
    cf_high: float | None = Field(None, description="Day high")
    cf_close: float | None = Field(None, description="Previous close")
    cf_volume: float | None = Field(None, description="Volume traded")
    cf_netchng: float | None = Field(None, description="Net change")
    pctchng: float | None = Field(None, description="Percentage change")
    yrhigh: float | None = Field(None, description="52-week high")
    yrlow: float | None = Field(None, description="52-week low")

    model_config = {
        "extra": "ignore",
        "frozen": True,
    }


class QuoteData(BaseModel):
    """Quote response for one listing."""

    symbol: str = Field(..., description="Listing symbol")
    quote: Quote = Field(default_factory=Quote)

    model_config = {
        "extra": "ignore",
        "frozen": True,
    }

    @property
    def percent_from_high(self) -> float | None:
        """How far the last price sits below the 52-week high, in percent."""
        last, high = self.quote.cf_last, self.quote.yrhigh
        if last is None or not high:
            return None
        return (high - last) / high * 100


class CompanyData(BaseModel):
    """Company information response."""

    ticker: str = Field(..., description="Ticker symbol")
    company_info: str = Field("", description="Business description")

    model_config = {
        "extra": "ignore",
        "frozen": True,
    }


T = TypeVar("T")


@dataclass(frozen=True)
class TickerResult(Generic[T]):
    """Outcome of fetching one ticker inside a batch.

    Exactly one of ``data`` and ``error`` is set.
    """

    ticker: str
    data: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
