"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from asxwatch.api.deps import get_services
from asxwatch.core.logging import get_logger
from asxwatch.schemas.common import HealthResponse
from asxwatch.services import Services


router = APIRouter(prefix="/health")

logger = get_logger("health")


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the API and its dependencies.",
)
async def health_check(services: Services = Depends(get_services)) -> HealthResponse:
    """
    Perform health check on API and dependencies.

    The API keeps serving cached quotes when storage is down, so a failing
    store only degrades the status.
    """
    checks = {
        "storage": await services.store.ping(),
        "scheduler": services.manager.scheduler.running
        or not services.settings.scheduler_enabled,
    }

    status = "healthy" if all(checks.values()) else "degraded"
    if status != "healthy":
        logger.warning(f"Health check degraded: {checks}")

    return HealthResponse(
        status=status,
        version=services.settings.app_version,
        checks=checks,
    )
