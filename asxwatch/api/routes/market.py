"""Market status endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from asxwatch.api.deps import get_manager
from asxwatch.schemas.tickers import MarketStatusResponse
from asxwatch.services import WatchSetManager


router = APIRouter(prefix="/market")


@router.get(
    "/status",
    response_model=MarketStatusResponse,
    summary="Market status",
    description="Whether the exchange is open and the refresh cadence in effect.",
)
async def market_status(
    manager: WatchSetManager = Depends(get_manager),
) -> MarketStatusResponse:
    clock = manager.market_clock
    window = manager.refresh_window()
    local = clock.local_time()
    return MarketStatusResponse(
        is_open=clock.is_open(local),
        local_time=local,
        timezone=str(clock.tz),
        stale_after_seconds=int(window.stale_after.total_seconds()),
        refetch_every_seconds=int(window.refetch_every.total_seconds()),
    )
