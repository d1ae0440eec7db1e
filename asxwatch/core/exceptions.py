"""Custom exceptions and centralized exception handlers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception with structured error response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.status_code = status_code or self.status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to RFC 7807 problem+json style response."""
        return {
            "error": self.error_code,
            "message": self.message,
            "status": self.status_code,
            **({"details": self.details} if self.details else {}),
        }


class ValidationError(AppException):
    """Malformed or too-short ticker symbol."""

    status_code = 422
    error_code = "VALIDATION_ERROR"
    message = "Please enter a valid ticker (minimum 3 alphanumeric characters)"


class MarketDataError(AppException):
    """A market data request failed.

    ``upstream_status`` is the HTTP status the market data API answered with,
    or None when the request never got a response.
    """

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "MARKET_DATA_ERROR"
    message = "Failed to fetch market data. Please try again later"
    retryable: bool = False

    def __init__(
        self,
        message: str | None = None,
        *,
        ticker: str | None = None,
        upstream_status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.ticker = ticker
        self.upstream_status = upstream_status
        merged = dict(details or {})
        if ticker:
            merged.setdefault("ticker", ticker)
        if upstream_status is not None:
            merged.setdefault("upstream_status", upstream_status)
        super().__init__(message=message, details=merged)


class NotFoundError(MarketDataError):
    """Ticker unknown or delisted (HTTP 404)."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    message = "Ticker not found or may be delisted"


class BadRequestError(MarketDataError):
    """The market data API rejected the request (HTTP 400)."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"
    message = "Invalid request. Please check the ticker symbol"


class TransientError(MarketDataError):
    """Any other HTTP failure, timeout or network error. Safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "EXTERNAL_SERVICE_ERROR"
    retryable = True


class PersistenceError(AppException):
    """Durable storage read or write failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "PERSISTENCE_ERROR"
    message = "Storage operation failed"


def register_exception_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers."""

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers={"X-Request-ID": getattr(request.state, "request_id", "unknown")},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger = logging.getLogger("asxwatch.error")
        logger.exception(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
            },
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "status": 500,
            },
            headers={"X-Request-ID": getattr(request.state, "request_id", "unknown")},
        )
