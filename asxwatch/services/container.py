"""Wiring of the long-lived services, built once per application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import httpx

from asxwatch.core.config import Settings, get_settings
from asxwatch.core.logging import get_logger
from asxwatch.domain.stocks import trending_tickers
from asxwatch.storage import MemoryStore, PersistentSet, ValkeyStore

from .market_clock import MarketClock
from .proxy import UpstreamProxy
from .refresh_policy import RefreshPolicy
from .resilience import BackoffPolicy
from .ticker_client import ResilientTickerClient
from .watch_set import WatchSetManager
from .watchlist import WatchlistStore

logger = get_logger("services.container")


@dataclass
class Services:
    settings: Settings
    client: ResilientTickerClient
    store: Union[ValkeyStore, MemoryStore]
    watchlist: WatchlistStore
    manager: WatchSetManager
    proxy: UpstreamProxy

    async def start(self) -> None:
        await self.manager.start()

    async def stop(self) -> None:
        await self.manager.stop()
        await self.client.aclose()
        await self.proxy.aclose()
        await self.store.aclose()


def build_services(
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    store: Union[ValkeyStore, MemoryStore, None] = None,
) -> Services:
    """Build the service graph from settings.

    ``transport`` and ``store`` override the network-facing pieces in tests.
    """
    settings = settings or get_settings()

    if store is None:
        if settings.storage_backend == "memory":
            store = MemoryStore()
        else:
            store = ValkeyStore(settings.valkey_url)
    logger.info(f"Using {type(store).__name__} for persistence")

    client = ResilientTickerClient(
        settings.market_data_base_url,
        market_key=settings.market_key,
        api_key=settings.api_key or None,
        timeout=settings.fetch_timeout,
        transport=transport,
        backoff=BackoffPolicy(
            max_attempts=settings.fetch_max_attempts,
            base_delay=settings.fetch_backoff_base,
            max_delay=settings.fetch_backoff_cap,
        ),
    )

    watchlist = WatchlistStore(PersistentSet(store), key=settings.watchlist_key)

    manager = WatchSetManager(
        client,
        market_clock=MarketClock(
            settings.market_timezone,
            open_hour=settings.market_open_hour,
            close_hour=settings.market_close_hour,
        ),
        refresh_policy=RefreshPolicy.from_seconds(
            settings.open_stale_after,
            settings.open_refetch_every,
            settings.closed_stale_after,
            settings.closed_refetch_every,
        ),
        watchlist=watchlist,
        trending=trending_tickers(settings.trending_count),
        idle_threshold=settings.idle_threshold,
        cleanup_interval=settings.cleanup_interval,
        refresh_interval=settings.refresh_tick_seconds,
        scheduler_enabled=settings.scheduler_enabled,
    )

    proxy = UpstreamProxy(
        settings.proxy_target,
        api_key=settings.api_key,
        timeout=settings.fetch_timeout,
        transport=transport,
    )

    return Services(
        settings=settings,
        client=client,
        store=store,
        watchlist=watchlist,
        manager=manager,
        proxy=proxy,
    )
