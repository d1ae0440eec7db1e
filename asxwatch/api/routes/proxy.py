"""Authenticated pass-through to the upstream market data API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from asxwatch.api.deps import get_proxy
from asxwatch.services import UpstreamProxy


router = APIRouter(prefix="/api/proxy")


@router.get("/{path:path}", summary="Proxy GET to the market data API")
async def proxy_get(
    path: str, request: Request, proxy: UpstreamProxy = Depends(get_proxy)
) -> JSONResponse:
    status_code, body = await proxy.forward(
        "GET", path, params=request.query_params.multi_items()
    )
    return JSONResponse(status_code=status_code, content=body)


@router.post("/{path:path}", summary="Proxy POST to the market data API")
async def proxy_post(
    path: str, request: Request, proxy: UpstreamProxy = Depends(get_proxy)
) -> JSONResponse:
    status_code, body = await proxy.forward(
        "POST",
        path,
        params=request.query_params.multi_items(),
        body=await request.body(),
    )
    return JSONResponse(status_code=status_code, content=body)
