"""Rate router: rate rule and modifier administration."""

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from ..core.dependencies import RATE_SERVICE_DEPENDENCY, require_permission
from ..core.permissions import Permission
from ..schemas.common import PROBLEM_RESPONSES
from ..schemas.rate import (
    AddModifierRequest,
    CreateRateRequest,
    ListRatesRequest,
    ModifierList,
    RateIdRequest,
    RateList,
    RateModifier,
    RateReference,
    RateRule,
    RateStats,
    RemoveModifierRequest,
    UpdateRateRequest,
)
from ..services.rate_service import RateService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/rate", tags=["rate"], responses=PROBLEM_RESPONSES)

READ_PERMISSION = Depends(require_permission(Permission.RATE_READ))
MANAGE_PERMISSION = Depends(require_permission(Permission.RATE_MANAGE))


def _convert_modifier_to_schema(modifier_model) -> RateModifier:
    """Convert rate modifier model to schema."""
    return RateModifier(
        id=str(modifier_model.id),
        rate_id=str(modifier_model.rate_id),
        name=modifier_model.name,
        modifier_type=modifier_model.modifier_type,
        value=modifier_model.value,
        condition=modifier_model.condition,
        position=modifier_model.position,
    )


def _convert_rule_to_schema(rule_model, modifiers=()) -> RateRule:
    """Convert rate rule model to schema."""
    return RateRule(
        id=str(rule_model.id),
        name=rule_model.name,
        description=rule_model.description,
        rate_type=rule_model.rate_type,
        base_price=rule_model.base_price,
        currency=rule_model.currency,
        applicable_item_type=rule_model.applicable_item_type,
        applicable_item_id=str(rule_model.applicable_item_id) if rule_model.applicable_item_id else None,
        start_date=rule_model.start_date,
        end_date=rule_model.end_date,
        days_of_week=list(rule_model.days_of_week or []),
        min_stay=rule_model.min_stay,
        max_stay=rule_model.max_stay,
        priority=rule_model.priority,
        is_active=rule_model.is_active,
        modifiers=[_convert_modifier_to_schema(m) for m in modifiers],
        created_at=rule_model.created_at,
        updated_at=rule_model.updated_at,
    )


async def _rule_response(service: RateService, rule_model, status_code: int = 200) -> JSONResponse:
    modifiers = await service.rates.list_modifiers(rule_model.id)
    response_data = _convert_rule_to_schema(rule_model, modifiers)
    return JSONResponse(status_code=status_code, content=response_data.model_dump(mode="json"))


@router.post("/create", response_model=RateRule, status_code=201, dependencies=[MANAGE_PERMISSION])
async def create_rate(
    request: CreateRateRequest,
    service: RateService = RATE_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Create a rate rule. Every invalid field is reported with its own error code."""
    rule = await service.create_rate(request)
    return await _rule_response(service, rule, status_code=201)


@router.post("/get", response_model=RateRule, dependencies=[READ_PERMISSION])
async def get_rate(
    request: RateIdRequest,
    service: RateService = RATE_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Get a rate rule with its modifiers."""
    rule = await service.get_rate(request.rate_id)
    return await _rule_response(service, rule)


@router.post("/update", response_model=RateRule, dependencies=[MANAGE_PERMISSION])
async def update_rate(
    request: UpdateRateRequest,
    service: RateService = RATE_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Partially update a rate rule."""
    rule = await service.update_rate(request)
    return await _rule_response(service, rule)


@router.post("/delete", status_code=204, dependencies=[MANAGE_PERMISSION])
async def delete_rate(
    request: RateIdRequest,
    service: RateService = RATE_SERVICE_DEPENDENCY,
) -> Response:
    """Delete a rate rule and its modifiers."""
    await service.delete_rate(request.rate_id)
    return Response(status_code=204)


@router.post("/activate", response_model=RateRule, dependencies=[MANAGE_PERMISSION])
async def activate_rate(
    request: RateIdRequest,
    service: RateService = RATE_SERVICE_DEPENDENCY,
) -> JSONResponse:
    rule = await service.activate_rate(request.rate_id)
    return await _rule_response(service, rule)


@router.post("/deactivate", response_model=RateRule, dependencies=[MANAGE_PERMISSION])
async def deactivate_rate(
    request: RateIdRequest,
    service: RateService = RATE_SERVICE_DEPENDENCY,
) -> JSONResponse:
    rule = await service.deactivate_rate(request.rate_id)
    return await _rule_response(service, rule)


@router.post("/list", response_model=RateList, dependencies=[READ_PERMISSION])
async def list_rates(
    request: ListRatesRequest,
    service: RateService = RATE_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """List rate rules, highest priority first. Modifiers are not included."""
    rules = await service.list_rates(request)
    response_data = RateList(items=[_convert_rule_to_schema(rule) for rule in rules])
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/stats", response_model=RateStats, dependencies=[READ_PERMISSION])
async def rate_stats(service: RateService = RATE_SERVICE_DEPENDENCY) -> JSONResponse:
    stats = await service.get_stats()
    return JSONResponse(status_code=200, content=stats.model_dump(mode="json"))


@router.post("/reference", response_model=RateReference, dependencies=[READ_PERMISSION])
async def rate_reference(service: RateService = RATE_SERVICE_DEPENDENCY) -> JSONResponse:
    """Rate types, weekdays, currencies, item types and modifier types accepted by this API."""
    return JSONResponse(status_code=200, content=service.get_reference().model_dump(mode="json"))


@router.post("/modifier/add", response_model=RateModifier, status_code=201, dependencies=[MANAGE_PERMISSION])
async def add_modifier(
    request: AddModifierRequest,
    service: RateService = RATE_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Append a modifier; modifiers apply in the order they were added."""
    modifier = await service.add_modifier(request)
    response_data = _convert_modifier_to_schema(modifier)
    return JSONResponse(status_code=201, content=response_data.model_dump(mode="json"))


@router.post("/modifier/list", response_model=ModifierList, dependencies=[READ_PERMISSION])
async def list_modifiers(
    request: RateIdRequest,
    service: RateService = RATE_SERVICE_DEPENDENCY,
) -> JSONResponse:
    modifiers = await service.get_modifiers(request.rate_id)
    response_data = ModifierList(
        rate_id=request.rate_id,
        items=[_convert_modifier_to_schema(m) for m in modifiers],
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/modifier/remove", status_code=204, dependencies=[MANAGE_PERMISSION])
async def remove_modifier(
    request: RemoveModifierRequest,
    service: RateService = RATE_SERVICE_DEPENDENCY,
) -> Response:
    await service.remove_modifier(request.modifier_id)
    return Response(status_code=204)
