"""Watchlist schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class WatchlistResponse(BaseModel):
    tickers: List[str] = Field(default_factory=list, description="Watchlisted tickers in insertion order")


class WatchlistChangeResponse(BaseModel):
    """Result of adding, removing or toggling one ticker."""

    ticker: str
    watchlisted: bool = Field(..., description="Membership after the change")
    changed: bool = Field(..., description="False when the request was a no-op")
    tickers: List[str] = Field(default_factory=list)
