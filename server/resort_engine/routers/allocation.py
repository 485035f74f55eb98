"""Allocation router: create, inspect, reschedule and move allocations through their lifecycle."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.dependencies import ALLOCATION_SERVICE_DEPENDENCY, Principal, require_permission
from ..core.exceptions import AuthorizationError
from ..core.permissions import Permission
from ..models.enums import AllocationStatus
from ..schemas.allocation import (
    Allocation,
    AllocationList,
    CreateAllocationRequest,
    GetAllocationRequest,
    ListAllocationsRequest,
    RescheduleAllocationRequest,
    TransitionAllocationRequest,
)
from ..schemas.common import PROBLEM_RESPONSES
from ..services.allocation_service import AllocationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/allocation", tags=["allocation"], responses=PROBLEM_RESPONSES)

CREATE_PERMISSION = Depends(require_permission(Permission.ALLOCATION_CREATE))
READ_PERMISSION = Depends(require_permission(Permission.ALLOCATION_READ))
UPDATE_PERMISSION = Depends(require_permission(Permission.ALLOCATION_UPDATE))


def _convert_allocation_to_schema(allocation_model) -> Allocation:
    """Convert allocation model to schema."""
    return Allocation(
        id=str(allocation_model.id),
        resource_id=str(allocation_model.resource_id),
        item_type=allocation_model.item_type,
        starts_at=allocation_model.starts_at,
        ends_at=allocation_model.ends_at,
        status=AllocationStatus(allocation_model.status).value,
        party_size=allocation_model.party_size,
        confirmation_code=allocation_model.confirmation_code,
        guest_name=allocation_model.guest_name,
        notes=allocation_model.notes,
        cancellation_reason=allocation_model.cancellation_reason,
        total_price=allocation_model.total_price,
        currency=allocation_model.currency,
        applied_rate_id=str(allocation_model.applied_rate_id) if allocation_model.applied_rate_id else None,
        created_at=allocation_model.created_at,
        updated_at=allocation_model.updated_at,
    )


def _allocation_response(allocation_model, status_code: int = 200) -> JSONResponse:
    response_data = _convert_allocation_to_schema(allocation_model)
    return JSONResponse(status_code=status_code, content=response_data.model_dump(mode="json"))


@router.post("/create", response_model=Allocation, status_code=201, dependencies=[CREATE_PERMISSION])
async def create_allocation(
    request: CreateAllocationRequest,
    service: AllocationService = ALLOCATION_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """
    Reserve a resource for an interval.

    Returns 409 with code CONFLICT and the conflicting allocation ids when
    the interval is taken.
    """
    allocation = await service.create_allocation(request)
    return _allocation_response(allocation, status_code=201)


@router.post("/get", response_model=Allocation, dependencies=[READ_PERMISSION])
async def get_allocation(
    request: GetAllocationRequest,
    service: AllocationService = ALLOCATION_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Get an allocation by ID."""
    allocation = await service.get_allocation(request.allocation_id)
    return _allocation_response(allocation)


@router.post("/list", response_model=AllocationList, dependencies=[READ_PERMISSION])
async def list_allocations(
    request: ListAllocationsRequest,
    service: AllocationService = ALLOCATION_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """List the allocations of a resource, optionally within a window."""
    allocations = await service.list_allocations(request)
    response_data = AllocationList(items=[_convert_allocation_to_schema(a) for a in allocations])
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/reschedule", response_model=Allocation, dependencies=[UPDATE_PERMISSION])
async def reschedule_allocation(
    request: RescheduleAllocationRequest,
    service: AllocationService = ALLOCATION_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Move a pending or confirmed allocation to a new interval."""
    allocation = await service.reschedule_allocation(request)
    return _allocation_response(allocation)


@router.post("/transition", response_model=Allocation)
async def transition_allocation(
    request: TransitionAllocationRequest,
    user: Principal = READ_PERMISSION,
    service: AllocationService = ALLOCATION_SERVICE_DEPENDENCY,
) -> JSONResponse:
    """
    Change an allocation's status.

    Cancelling needs the cancel permission; every other transition needs the
    update permission.
    """
    required = (
        Permission.ALLOCATION_CANCEL
        if request.target_status == AllocationStatus.CANCELLED.value
        else Permission.ALLOCATION_UPDATE
    )
    if required not in user.permissions:
        logger.warning(
            "Allocation transition denied",
            extra={
                "user_id": user.user_id,
                "allocation_id": request.allocation_id,
                "target_status": request.target_status,
            }
        )
        raise AuthorizationError(
            detail=f"Permission '{required.value}' is required",
            required_permissions=[required.value],
        )

    allocation = await service.apply_transition(request)
    return _allocation_response(allocation)
