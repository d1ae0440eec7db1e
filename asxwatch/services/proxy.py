"""Authenticated pass-through to the upstream market data API.

Keeps the API key server side: callers hit ``/api/proxy/<path>`` and the
proxy adds ``Authorization: Bearer <api_key>`` before forwarding.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import httpx

from asxwatch.core.logging import get_logger

logger = get_logger("services.proxy")

INTERNAL_ERROR_BODY = {"error": "Internal server error"}


class UpstreamProxy:
    def __init__(
        self,
        base_url: Optional[str],
        api_key: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def forward(
        self,
        method: str,
        path: str,
        params: Sequence[tuple[str, str]] = (),
        body: Optional[bytes] = None,
    ) -> tuple[int, Any]:
        """
        Forward one request and return ``(status_code, json_body)``.

        Upstream failures keep the upstream status with
        ``{"error": "API request failed: <reason>"}``. Anything that prevents
        a usable answer (no upstream configured, transport error, undecodable
        body) becomes 500 with ``{"error": "Internal server error"}``.
        """
        if not self.base_url:
            logger.error("Proxy request received but no upstream API is configured")
            return 500, INTERNAL_ERROR_BODY

        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.info(f"Proxying {method} request to {url}")

        try:
            response = await self._client.request(
                method, url, params=list(params) or None, content=body
            )
        except httpx.HTTPError as e:
            logger.error(f"Proxy error for {url}: {e}")
            return 500, INTERNAL_ERROR_BODY

        if not response.is_success:
            reason = response.reason_phrase
            logger.warning(f"API request failed: {response.status_code} {reason}")
            return response.status_code, {"error": f"API request failed: {reason}"}

        try:
            return response.status_code, response.json()
        except ValueError:
            logger.error(f"Undecodable upstream body from {url}")
            return 500, INTERNAL_ERROR_BODY
