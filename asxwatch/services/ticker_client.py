"""
Market data client for ASX quotes and company information.

Talks to the market data API (normally through the authenticated proxy)
over a shared httpx.AsyncClient. Failures are mapped by status code alone:

    404        -> NotFoundError
    400        -> BadRequestError
    other      -> TransientError (carries the status)
    no answer  -> TransientError (timeout, connection error, bad JSON)

TickerFetchClient never retries. ResilientTickerClient adds bounded
exponential backoff around each single fetch.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Sequence

import httpx
from pydantic import ValidationError as ModelValidationError

from asxwatch.core.exceptions import (
    BadRequestError,
    MarketDataError,
    NotFoundError,
    TransientError,
)
from asxwatch.core.logging import get_logger
from asxwatch.domain.quote import CompanyData, QuoteData, TickerResult

from .resilience import BackoffPolicy, retry_async

logger = get_logger("services.ticker_client")

QUOTES_PATH = "/api/market_data/quotes"
COMPANY_PATH = "/api/market_data/company_information"

INVALID_REQUEST_MESSAGE = "Invalid request. Please check the ticker symbol"


class TickerFetchClient:
    """One request per call, no retries."""

    def __init__(
        self,
        base_url: str,
        market_key: str = "asx",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.market_key = market_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TickerFetchClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def fetch_quote(self, ticker: str) -> QuoteData:
        """Fetch the latest quote for one listing."""
        ticker = ticker.upper()
        generic = "Failed to fetch quote data. Please try again later"
        payload = await self._get_json(
            QUOTES_PATH,
            {"market_key": self.market_key, "listing_key": ticker},
            ticker=ticker,
            not_found=f"Quote data for ticker '{ticker}' not found",
            generic=generic,
        )
        return self._parse(QuoteData, payload, ticker, generic)

    async def fetch_company(self, ticker: str) -> CompanyData:
        """Fetch company information for one ticker."""
        ticker = ticker.upper()
        generic = "Failed to fetch company information. Please try again later"
        payload = await self._get_json(
            COMPANY_PATH,
            {"ticker": ticker},
            ticker=ticker,
            not_found=f"Ticker '{ticker}' not found or may be delisted",
            generic=generic,
        )
        return self._parse(CompanyData, payload, ticker, generic)

    async def fetch_many(self, tickers: Sequence[str]) -> list[TickerResult[QuoteData]]:
        """
        Fetch quotes for all tickers concurrently.

        Returns one result per input ticker, in input order. A failing ticker
        is captured in its own result and never aborts the batch.
        """
        outcomes = await asyncio.gather(
            *(self.fetch_quote(ticker) for ticker in tickers),
            return_exceptions=True,
        )
        results: list[TickerResult[QuoteData]] = []
        for ticker, outcome in zip(tickers, outcomes):
            if isinstance(outcome, Exception):
                results.append(TickerResult(ticker=ticker.upper(), error=outcome))
            elif isinstance(outcome, BaseException):
                # Cancellation is not a per-ticker failure
                raise outcome
            else:
                results.append(TickerResult(ticker=ticker.upper(), data=outcome))
        return results

    async def _get_json(
        self,
        path: str,
        params: dict[str, str],
        *,
        ticker: str,
        not_found: str,
        generic: str,
    ) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.TimeoutException:
            logger.warning(f"Timeout fetching {path} for {ticker}")
            raise TransientError(generic, ticker=ticker)
        except httpx.HTTPError as e:
            logger.warning(f"Error fetching {path} for {ticker}: {e}")
            raise TransientError(generic, ticker=ticker)

        if not response.is_success:
            raise self._error_for_status(response.status_code, ticker, not_found, generic)

        try:
            return response.json()
        except ValueError:
            logger.warning(f"Undecodable body from {path} for {ticker}")
            raise TransientError(generic, ticker=ticker, upstream_status=response.status_code)

    @staticmethod
    def _error_for_status(
        status_code: int, ticker: str, not_found: str, generic: str
    ) -> MarketDataError:
        if status_code == 404:
            return NotFoundError(not_found, ticker=ticker, upstream_status=404)
        if status_code == 400:
            return BadRequestError(INVALID_REQUEST_MESSAGE, ticker=ticker, upstream_status=400)
        logger.debug(f"Market data API returned {status_code} for {ticker}")
        return TransientError(generic, ticker=ticker, upstream_status=status_code)

    @staticmethod
    def _parse(model, payload: Any, ticker: str, generic: str):
        try:
            return model.model_validate(payload)
        except ModelValidationError as e:
            logger.warning(f"Unexpected {model.__name__} payload for {ticker}: {e}")
            raise TransientError(generic, ticker=ticker)


class ResilientTickerClient(TickerFetchClient):
    """TickerFetchClient with bounded exponential backoff on transient failures."""

    def __init__(self, *args, backoff: BackoffPolicy = BackoffPolicy(), **kwargs):
        super().__init__(*args, **kwargs)
        self.backoff = backoff

    def _log_retry(self, attempt: int, error: Exception) -> None:
        logger.info(f"Retrying after attempt {attempt}: {error}")

    async def fetch_quote(self, ticker: str) -> QuoteData:
        return await retry_async(
            lambda: super(ResilientTickerClient, self).fetch_quote(ticker),
            self.backoff,
            on_retry=self._log_retry,
        )

    async def fetch_company(self, ticker: str) -> CompanyData:
        return await retry_async(
            lambda: super(ResilientTickerClient, self).fetch_company(ticker),
            self.backoff,
            on_retry=self._log_retry,
        )
