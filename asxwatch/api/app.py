"""API application factory."""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from asxwatch.core.config import Settings, get_settings
from asxwatch.core.exceptions import register_exception_handlers
from asxwatch.core.logging import get_logger, request_id_var
from asxwatch.schemas.common import ErrorResponse
from asxwatch.services import Services, build_services

from .routes import health, market, proxy, stocks, tickers, watchlist


logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the watch set on startup, release connections on shutdown."""
    services: Services = app.state.services
    await services.start()

    yield

    try:
        await services.stop()
    except Exception as e:
        logger.warning(f"Service shutdown failed: {e}")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add request ID to all requests for tracing."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        request_id_var.set(request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status and duration."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.monotonic()

        response = await call_next(request)

        duration = time.monotonic() - start_time

        # Path only, query strings may carry keys on the proxy route
        path = request.url.path

        logger.info(
            f"{request.method} {path} -> {response.status_code} ({duration:.3f}s)",
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": int(duration * 1000),
            },
        )

        return response


def create_app(
    services: Optional[Services] = None, settings: Optional[Settings] = None
) -> FastAPI:
    """Create and configure the API application.

    ``services`` is built from settings when not given.
    """
    settings = settings or (services.settings if services else get_settings())

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Live ASX quotes, trending stocks and a persisted watchlist",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        responses={
            400: {"model": ErrorResponse, "description": "Bad Request"},
            404: {"model": ErrorResponse, "description": "Not Found"},
            422: {"model": ErrorResponse, "description": "Validation Error"},
            500: {"model": ErrorResponse, "description": "Internal Server Error"},
            502: {"model": ErrorResponse, "description": "Market Data Error"},
            503: {"model": ErrorResponse, "description": "Market Data Unavailable"},
        },
    )
    app.state.services = services or build_services(settings)

    # Add middlewares (order matters - first added is innermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(market.router, tags=["Market"])
    app.include_router(stocks.router, tags=["Stocks"])
    app.include_router(tickers.router, tags=["Tickers"])
    app.include_router(watchlist.router, tags=["Watchlist"])
    app.include_router(proxy.router, tags=["Proxy"])

    return app
