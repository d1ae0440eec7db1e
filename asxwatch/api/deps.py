"""FastAPI dependencies resolving the long-lived services from app state."""

from __future__ import annotations

from fastapi import Depends, Request

from asxwatch.services import Services, UpstreamProxy, WatchlistStore, WatchSetManager


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_manager(services: Services = Depends(get_services)) -> WatchSetManager:
    return services.manager


def get_watchlist(services: Services = Depends(get_services)) -> WatchlistStore:
    return services.watchlist


def get_proxy(services: Services = Depends(get_services)) -> UpstreamProxy:
    return services.proxy
