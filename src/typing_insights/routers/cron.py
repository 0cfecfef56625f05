from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette import status

from ..aggregator import WeaknessAggregator
from ..auth import is_authorized
from ..cache import TTLCache
from ..config import Settings, get_settings
from ..dependencies import get_aggregator, get_cache
from ..schemas import AggregationResult

logger = logging.getLogger(__name__)

cron_router = APIRouter(prefix="/cron", tags=["cron"])


@cron_router.api_route(
    "/calculate-weaknesses",
    methods=["GET", "POST"],
    summary="Recompute weakness profiles for recently active users",
    response_model=AggregationResult,
    status_code=status.HTTP_200_OK,
)
# PUBLIC_INTERFACE
def calculate_weaknesses(
    request: Request,
    settings: Settings = Depends(get_settings),
    aggregator: WeaknessAggregator = Depends(get_aggregator),
    profile_cache: TTLCache = Depends(get_cache),
) -> AggregationResult:
    """Run the weakness aggregation job.

    Meant for an external scheduler. When a cron token is configured the
    request must carry it as a bearer token or ``X-API-Key`` header.

    Returns:
        AggregationResult with the number of users processed.

    Raises:
        HTTPException 401 if the token is missing or wrong.
        HTTPException 500 if the run could not start.
    """
    token = settings.cron_auth_token
    if token and not is_authorized(request, [token]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        result = aggregator.run()
    except Exception as e:
        logger.exception("Cron job error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Cron job failed: {e}",
        )
    profile_cache.invalidate("weakness_profile")
    return result
