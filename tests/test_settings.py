"""Tests for Settings validation and service wiring."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from asxwatch.core.config import Settings
from asxwatch.services import build_services
from asxwatch.services.ticker_client import ResilientTickerClient
from asxwatch.storage import MemoryStore, ValkeyStore


class TestSettings:
    """Tests for Settings parsing and validators."""

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.market_key == "asx"
        assert settings.fetch_timeout == 30.0
        assert settings.idle_threshold == 180
        assert settings.market_timezone == "Australia/Sydney"
        assert settings.watchlist_key == "asx-watchlist"

    def test_cors_origins_from_comma_string(self):
        settings = Settings(_env_file=None, cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_log_level_normalised(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="LOUD")

    def test_close_must_follow_open(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, market_open_hour=16, market_close_hour=10)

    def test_proxy_target(self):
        assert Settings(_env_file=None, upstream_api_base_url="").proxy_target is None
        assert (
            Settings(_env_file=None, upstream_api_base_url="https://api.test/").proxy_target
            == "https://api.test"
        )

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("IDLE_THRESHOLD", "60")
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        settings = Settings(_env_file=None)
        assert settings.idle_threshold == 60
        assert settings.storage_backend == "memory"


class TestBuildServices:
    """Tests for build_services wiring."""

    @pytest.mark.asyncio
    async def test_memory_backend(self):
        services = build_services(Settings(_env_file=None, storage_backend="memory"))
        try:
            assert isinstance(services.store, MemoryStore)
            assert isinstance(services.client, ResilientTickerClient)
            assert services.client.backoff.max_attempts == 3
            assert services.manager.trending == ["CBA", "BHP", "NAB", "WBC", "WES", "CSL"]
        finally:
            await services.stop()

    @pytest.mark.asyncio
    async def test_valkey_backend_is_lazy(self):
        services = build_services(
            Settings(_env_file=None, storage_backend="valkey", valkey_url="redis://localhost:1/0")
        )
        try:
            assert isinstance(services.store, ValkeyStore)
        finally:
            await services.manager.stop()
            await services.client.aclose()
            await services.proxy.aclose()
