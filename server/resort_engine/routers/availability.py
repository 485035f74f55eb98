"""Availability router: combined availability/pricing checks and blocked dates."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.dependencies import FACADE_DEPENDENCY, require_permission
from ..core.permissions import Permission
from ..schemas.availability import (
    AvailabilityRequest,
    AvailabilityResult,
    BlockedDatesRequest,
    BlockedDatesResponse,
)
from ..schemas.common import PROBLEM_RESPONSES
from ..services.availability_service import AvailabilityPricingFacade
from ..services.validation import parse_uuid

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/availability",
    tags=["availability"],
    responses=PROBLEM_RESPONSES,
    dependencies=[Depends(require_permission(Permission.AVAILABILITY_READ))],
)


@router.post("/evaluate", response_model=AvailabilityResult)
async def evaluate_availability(
    request: AvailabilityRequest,
    facade: AvailabilityPricingFacade = FACADE_DEPENDENCY,
) -> JSONResponse:
    """
    Check whether a resource is free for an interval and what it would cost.

    A conflict is a normal outcome: the response carries ``available: false``
    with the overlapping allocations, and the price is still computed.
    """
    result = await facade.evaluate(request)
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/blocked-dates", response_model=BlockedDatesResponse)
async def blocked_dates(
    request: BlockedDatesRequest,
    facade: AvailabilityPricingFacade = FACADE_DEPENDENCY,
) -> JSONResponse:
    """List the calendar dates inside a window already taken on a resource."""
    resource_id = parse_uuid(request.resource_id, "resource_id")
    dates = await facade.detector.blocked_dates(resource_id, request.window_start, request.window_end)

    logger.debug(
        "Blocked dates listed",
        extra={"resource_id": str(resource_id), "blocked_count": len(dates)}
    )

    response_data = BlockedDatesResponse(resource_id=str(resource_id), blocked_dates=dates)
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
