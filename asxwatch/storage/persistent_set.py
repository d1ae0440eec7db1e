"""Ordered ticker sets persisted as JSON arrays.

Persistence is best effort: a corrupt payload loads as empty and a failed
write is logged, never raised, so storage trouble can't break in-memory
state.
"""

from __future__ import annotations

import json
from typing import Sequence

from asxwatch.core.exceptions import PersistenceError
from asxwatch.core.logging import get_logger
from asxwatch.domain.ticker import dedupe_tickers

from .stores import KeyValueStore


logger = get_logger("storage.persistent_set")


class PersistentSet:
    """Load and save ordered, de-duplicated ticker lists under string keys."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def load(self, key: str) -> list[str]:
        """Read the tickers stored under ``key``. Never raises."""
        try:
            raw = await self.store.get(key)
        except Exception as e:
            logger.warning(f"Failed to read '{key}' from storage: {e}")
            return []

        if raw is None:
            return []

        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding corrupt payload under '{key}': {e}")
            return []

        if not isinstance(payload, list):
            logger.warning(
                f"Discarding non-array payload under '{key}' ({type(payload).__name__})"
            )
            return []

        return dedupe_tickers(item for item in payload if isinstance(item, str))

    async def save(self, key: str, tickers: Sequence[str]) -> bool:
        """Write ``tickers`` under ``key``. Returns False on failure."""
        try:
            await self._write(key, tickers)
        except PersistenceError as e:
            logger.warning(str(e))
            return False
        logger.debug(f"Saved {len(tickers)} tickers under '{key}'")
        return True

    async def clear(self, key: str) -> bool:
        try:
            await self.store.remove(key)
        except Exception as e:
            logger.warning(f"Failed to remove '{key}' from storage: {e}")
            return False
        return True

    async def _write(self, key: str, tickers: Sequence[str]) -> None:
        try:
            await self.store.set(key, json.dumps(list(tickers)))
        except Exception as e:
            raise PersistenceError(
                f"Failed to save '{key}' to storage: {e}", details={"key": key}
            ) from e
