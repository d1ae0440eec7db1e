"""Business logic services."""

from .container import Services, build_services
from .market_clock import MarketClock
from .proxy import UpstreamProxy
from .refresh_policy import RefreshPolicy, RefreshWindow
from .resilience import BackoffPolicy, RequestCoalescer, retry_async
from .scheduler import WatchSetScheduler
from .ticker_client import ResilientTickerClient, TickerFetchClient
from .watch_set import TickerState, WatchSetManager
from .watchlist import WatchlistStore


__all__ = [
    "BackoffPolicy",
    "MarketClock",
    "RefreshPolicy",
    "RefreshWindow",
    "RequestCoalescer",
    "ResilientTickerClient",
    "Services",
    "TickerFetchClient",
    "TickerState",
    "UpstreamProxy",
    "WatchSetManager",
    "WatchSetScheduler",
    "WatchlistStore",
    "build_services",
    "retry_async",
]
