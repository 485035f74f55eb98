"""Pricing router: quotes without an availability check."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.dependencies import FACADE_DEPENDENCY, require_permission
from ..core.permissions import Permission
from ..schemas.availability import PricingResult, QuoteRequest
from ..schemas.common import PROBLEM_RESPONSES
from ..services.availability_service import AvailabilityPricingFacade
from ..services.validation import parse_optional_uuid

router = APIRouter(
    prefix="/v1/pricing",
    tags=["pricing"],
    responses=PROBLEM_RESPONSES,
    dependencies=[Depends(require_permission(Permission.PRICING_QUOTE))],
)


@router.post("/quote", response_model=PricingResult)
async def quote(
    request: QuoteRequest,
    facade: AvailabilityPricingFacade = FACADE_DEPENDENCY,
) -> JSONResponse:
    """
    Price a stay from the best applicable rate rule.

    ``applied_rule_id`` is null when no rule matched and the zero-price
    fallback was used.
    """
    result = await facade.resolve_rate(
        request.item_type,
        parse_optional_uuid(request.item_id, "item_id"),
        request.on_date,
        request.nights,
    )
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))
