"""Trading-hours clock for the exchange."""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from asxwatch.core.logging import get_logger

logger = get_logger("services.market_clock")


class MarketClock:
    """Answers whether the market is open at a given instant.

    Open means a Monday-Friday local date and ``open_hour <= hour < close_hour``
    in the exchange timezone. Public holidays are not modelled.
    """

    def __init__(
        self,
        timezone_name: str = "Australia/Sydney",
        open_hour: int = 10,
        close_hour: int = 16,
    ):
        self.open_hour = open_hour
        self.close_hour = close_hour
        self.tz = self._resolve_timezone(timezone_name)

    @staticmethod
    def _resolve_timezone(name: str) -> tzinfo:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown market timezone '{name}', falling back to UTC")
            return timezone.utc

    def local_time(self, now: Optional[datetime] = None) -> datetime:
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(self.tz)

    def is_open(self, now: Optional[datetime] = None) -> bool:
        local = self.local_time(now)
        is_weekday = local.weekday() < 5
        return is_weekday and self.open_hour <= local.hour < self.close_hour
