"""String key-value stores backing persisted ticker sets."""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol
from urllib.parse import urlsplit, urlunsplit

from redis.asyncio import ConnectionPool, Redis

from asxwatch.core.logging import get_logger


logger = get_logger("storage.stores")


def redact_url(url: str) -> str:
    """Mask the password in a connection URL so it can be logged."""
    parts = urlsplit(url)
    if parts.password is None:
        return url
    userinfo = f"{parts.username}:***" if parts.username else ":***"
    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return urlunsplit(parts._replace(netloc=f"{userinfo}@{host}"))


class KeyValueStore(Protocol):
    """Durable string store. Implementations may raise on I/O failure."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store for development and tests."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


class ValkeyStore:
    """Valkey (Redis-compatible) store with a lazily created connection pool."""

    def __init__(self, url: str, max_connections: int = 10):
        self._url = url
        self._max_connections = max_connections
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = None

    def _get_client(self) -> Redis:
        if self._client is None:
            self._pool = ConnectionPool.from_url(
                self._url,
                max_connections=self._max_connections,
                decode_responses=True,
                socket_timeout=5.0,
                socket_connect_timeout=5.0,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            self._client = Redis(connection_pool=self._pool)
            logger.info(
                "Valkey connection pool initialized", extra={"url": redact_url(self._url)}
            )
        return self._client

    async def get(self, key: str) -> Optional[str]:
        return await self._get_client().get(key)

    async def set(self, key: str, value: str) -> None:
        await self._get_client().set(key, value)

    async def remove(self, key: str) -> None:
        await self._get_client().delete(key)

    async def ping(self) -> bool:
        """Check Valkey connection health."""
        try:
            result = await asyncio.wait_for(self._get_client().ping(), timeout=5.0)
            return result is True or result == "PONG"
        except Exception as e:
            logger.warning(f"Valkey healthcheck failed: {e}")
            return False

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None
        logger.info("Valkey connection pool closed")
