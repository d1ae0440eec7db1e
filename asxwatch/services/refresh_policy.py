"""Staleness and refetch cadence for watched quotes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class RefreshWindow:
    stale_after: timedelta
    refetch_every: timedelta


@dataclass(frozen=True)
class RefreshPolicy:
    """Short windows while the market trades, long ones while it's shut.

    Pure policy. Whoever schedules the refetches is responsible for keeping
    at most one fetch in flight per ticker.
    """

    open_stale_after: timedelta = timedelta(minutes=3)
    open_refetch_every: timedelta = timedelta(minutes=1)
    closed_stale_after: timedelta = timedelta(hours=1)
    closed_refetch_every: timedelta = timedelta(hours=1)

    def window(self, market_open: bool) -> RefreshWindow:
        if market_open:
            return RefreshWindow(self.open_stale_after, self.open_refetch_every)
        return RefreshWindow(self.closed_stale_after, self.closed_refetch_every)

    @classmethod
    def from_seconds(
        cls,
        open_stale_after: float,
        open_refetch_every: float,
        closed_stale_after: float,
        closed_refetch_every: float,
    ) -> "RefreshPolicy":
        return cls(
            open_stale_after=timedelta(seconds=open_stale_after),
            open_refetch_every=timedelta(seconds=open_refetch_every),
            closed_stale_after=timedelta(seconds=closed_stale_after),
            closed_refetch_every=timedelta(seconds=closed_refetch_every),
        )
