"""User-curated watchlist persisted through a PersistentSet.

The watchlist has its own lifecycle, independent of the transient watch
set: a ticker can be watchlisted before any quote for it has been fetched.
"""

from __future__ import annotations

import asyncio

from asxwatch.core.exceptions import ValidationError
from asxwatch.core.logging import get_logger
from asxwatch.domain.ticker import validate_ticker
from asxwatch.storage.persistent_set import PersistentSet

logger = get_logger("services.watchlist")

WATCHLIST_STORAGE_KEY = "asx-watchlist"


class WatchlistStore:
    """Ordered set of watchlisted tickers, written through on every change."""

    def __init__(self, persistent_set: PersistentSet, key: str = WATCHLIST_STORAGE_KEY):
        self._persistent_set = persistent_set
        self._key = key
        self._tickers: list[str] = []
        self._lock = asyncio.Lock()

    async def load(self) -> list[str]:
        """Replace the in-memory list with what storage holds."""
        async with self._lock:
            self._tickers = await self._persistent_set.load(self._key)
        logger.info(f"Loaded {len(self._tickers)} watchlisted tickers")
        return self.list()

    def list(self) -> list[str]:
        return list(self._tickers)

    def contains(self, ticker: str) -> bool:
        try:
            return validate_ticker(ticker) in self._tickers
        except ValidationError:
            return False

    async def add(self, ticker: str) -> bool:
        """Add ``ticker``. Returns False when it was already present."""
        ticker = validate_ticker(ticker)
        async with self._lock:
            if ticker in self._tickers:
                return False
            self._tickers.append(ticker)
            await self._save()
        return True

    async def remove(self, ticker: str) -> bool:
        """Remove ``ticker``. Returns False when it wasn't present."""
        ticker = validate_ticker(ticker)
        async with self._lock:
            if ticker not in self._tickers:
                return False
            self._tickers.remove(ticker)
            await self._save()
        return True

    async def toggle(self, ticker: str) -> bool:
        """Remove if present, add otherwise. Returns the new membership."""
        ticker = validate_ticker(ticker)
        async with self._lock:
            if ticker in self._tickers:
                self._tickers.remove(ticker)
                added = False
            else:
                self._tickers.append(ticker)
                added = True
            await self._save()
        return added

    async def clear(self) -> None:
        async with self._lock:
            self._tickers = []
            await self._persistent_set.clear(self._key)
        logger.info("Watchlist cleared")

    async def _save(self) -> None:
        # Failures are logged by PersistentSet; in-memory state stays authoritative
        await self._persistent_set.save(self._key, self._tickers)

    def __contains__(self, ticker: str) -> bool:
        return self.contains(ticker)

    def __len__(self) -> int:
        return len(self._tickers)

    def __repr__(self) -> str:
        return f"WatchlistStore({self._tickers})"
