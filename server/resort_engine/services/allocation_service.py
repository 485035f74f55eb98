"""Allocation service: atomic creation, rescheduling and the status lifecycle."""

import logging
import secrets
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from ..core.exceptions import (
    AllocationConflictError,
    ConflictError,
    InvalidStatusTransitionError,
    NotFoundError,
)
from ..core.locks import ResourceLockRegistry
from ..core.observability import metrics_collector
from ..models.allocation import Allocation
from ..models.enums import AllocationStatus, ItemType
from ..repositories.base import AllocationRepository
from ..schemas.allocation import (
    CreateAllocationRequest,
    ListAllocationsRequest,
    RescheduleAllocationRequest,
    TransitionAllocationRequest,
)
from .availability_service import AvailabilityPricingFacade, stay_length_nights
from .interval_conflicts import IntervalConflictDetector, to_naive_utc, validate_interval
from .validation import parse_item_type, parse_status, parse_uuid, validate_party_size

logger = logging.getLogger(__name__)

# No 0/O or 1/I, which guests misread over the phone
CONFIRMATION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CONFIRMATION_CODE_LENGTH = 8

TRANSITIONS: dict[AllocationStatus, frozenset[AllocationStatus]] = {
    AllocationStatus.PENDING: frozenset({AllocationStatus.CONFIRMED, AllocationStatus.CANCELLED}),
    AllocationStatus.CONFIRMED: frozenset({
        AllocationStatus.CHECKED_IN,
        AllocationStatus.CANCELLED,
        AllocationStatus.NO_SHOW,
    }),
    AllocationStatus.CHECKED_IN: frozenset({AllocationStatus.CHECKED_OUT}),
    AllocationStatus.CHECKED_OUT: frozenset(),
    AllocationStatus.CANCELLED: frozenset(),
    AllocationStatus.NO_SHOW: frozenset(),
}

MODIFIABLE_STATUSES = frozenset({AllocationStatus.PENDING, AllocationStatus.CONFIRMED})


def can_transition(current: AllocationStatus | str, target: AllocationStatus | str) -> bool:
    return AllocationStatus(target) in TRANSITIONS[AllocationStatus(current)]


def generate_confirmation_code(length: int = CONFIRMATION_CODE_LENGTH) -> str:
    """Generate a random confirmation code."""
    return ''.join(secrets.choice(CONFIRMATION_CODE_ALPHABET) for _ in range(length))


class AllocationService:
    """Service for allocation-related operations."""

    def __init__(
        self,
        allocations: AllocationRepository,
        facade: AvailabilityPricingFacade,
        locks: ResourceLockRegistry,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.allocations = allocations
        self.facade = facade
        self.locks = locks
        self.clock = clock
        self.detector = IntervalConflictDetector(allocations)

    async def _unique_confirmation_code(self) -> str:
        code = generate_confirmation_code()
        while await self.allocations.confirmation_code_exists(code):
            code = generate_confirmation_code()
        return code

    async def create_allocation(self, request: CreateAllocationRequest) -> Allocation:
        """
        Reserve a resource for an interval.

        Conflict detection and the insert run inside the resource's critical
        section, so of several overlapping requests racing for one resource
        exactly one succeeds. The price is computed once here and stored on
        the allocation.

        Args:
            request: Allocation creation request

        Returns:
            Created allocation, status pending

        Raises:
            DomainValidationError: For malformed input
            AllocationConflictError: If a live allocation overlaps the interval
            NoApplicableRateError: In strict pricing mode when no rule applies
        """
        resource_id = parse_uuid(request.resource_id, "resource_id")
        item_type = parse_item_type(request.item_type)
        start, end = validate_interval(request.start, request.end)
        validate_party_size(request.party_size)

        async with self.locks.hold(resource_id) as waited:
            metrics_collector.record_lock_wait(waited)
            await self.allocations.lock_resource(resource_id)

            conflicts = await self.detector.find_conflicts(resource_id, start, end)
            if conflicts:
                logger.warning(
                    "Allocation creation failed - interval taken",
                    extra={
                        "resource_id": str(resource_id),
                        "start": start.isoformat(),
                        "end": end.isoformat(),
                        "conflicting_ids": [str(c.id) for c in conflicts],
                    }
                )
                metrics_collector.record_allocation_conflict(item_type.value, "create")
                raise AllocationConflictError(
                    resource_id=str(resource_id),
                    conflicting_ids=sorted(str(c.id) for c in conflicts),
                )

            pricing = await self.facade.resolve_rate(
                item_type,
                resource_id,
                request.start.date(),
                stay_length_nights(start, end),
            )

            allocation = Allocation(
                resource_id=resource_id,
                item_type=item_type.value,
                starts_at=start,
                ends_at=end,
                status=AllocationStatus.PENDING.value,
                party_size=request.party_size,
                confirmation_code=await self._unique_confirmation_code(),
                guest_name=request.guest_name,
                notes=request.notes,
                total_price=pricing.total_price,
                currency=pricing.currency,
                applied_rate_id=UUID(pricing.applied_rule_id) if pricing.applied_rule_id else None,
            )

            try:
                allocation = await self.allocations.add(allocation)
            except AllocationConflictError:
                metrics_collector.record_allocation_conflict(item_type.value, "create")
                raise

        metrics_collector.record_allocation_created(item_type.value)

        logger.info(
            "Allocation created successfully",
            extra={
                "allocation_id": str(allocation.id),
                "resource_id": str(resource_id),
                "item_type": item_type.value,
                "start": start.isoformat(),
                "end": end.isoformat(),
                "party_size": allocation.party_size,
                "total_price": str(allocation.total_price),
                "currency": allocation.currency,
                "applied_rate_id": str(allocation.applied_rate_id) if allocation.applied_rate_id else None,
                "confirmation_code": allocation.confirmation_code,
            }
        )

        return allocation

    async def get_allocation(self, allocation_id: UUID | str) -> Allocation:
        """
        Get an allocation by ID.

        Raises:
            DomainValidationError: INVALID_ID for a malformed id
            NotFoundError: If no such allocation exists
        """
        allocation_id = parse_uuid(allocation_id, "allocation_id")
        allocation = await self.allocations.get(allocation_id)
        if not allocation:
            raise NotFoundError(
                resource_type="allocation",
                resource_id=str(allocation_id),
                code="ALLOCATION_NOT_FOUND",
            )
        return allocation

    async def list_allocations(self, request: ListAllocationsRequest) -> list[Allocation]:
        resource_id = parse_uuid(request.resource_id, "resource_id")
        window_start = to_naive_utc(request.window_start) if request.window_start else None
        window_end = to_naive_utc(request.window_end) if request.window_end else None
        if window_start and window_end:
            validate_interval(window_start, window_end)

        return await self.allocations.list_for_resource(
            resource_id,
            window_start=window_start,
            window_end=window_end,
            include_released=request.include_released,
        )

    async def reschedule_allocation(self, request: RescheduleAllocationRequest) -> Allocation:
        """
        Move an allocation to a new interval on the same resource.

        The allocation itself is left out of conflict detection, so shifting
        it into a range that overlaps its old one succeeds. The price snapshot
        is kept as it was.

        Raises:
            DomainValidationError: For malformed input
            NotFoundError: If the allocation does not exist
            ConflictError: ALLOCATION_NOT_MODIFIABLE unless pending or confirmed
            AllocationConflictError: If another live allocation overlaps
        """
        start, end = validate_interval(request.start, request.end)
        allocation = await self.get_allocation(request.allocation_id)

        status = AllocationStatus(allocation.status)
        if status not in MODIFIABLE_STATUSES:
            raise ConflictError(
                detail=f"Allocation {allocation.id} cannot be modified in status '{status.value}'",
                code="ALLOCATION_NOT_MODIFIABLE",
                conflicting_resource={"allocation_id": str(allocation.id), "status": status.value},
            )

        async with self.locks.hold(allocation.resource_id) as waited:
            metrics_collector.record_lock_wait(waited)
            await self.allocations.lock_resource(allocation.resource_id)

            conflicts = await self.detector.find_conflicts(
                allocation.resource_id,
                start,
                end,
                exclude_allocation_id=allocation.id,
            )
            if conflicts:
                logger.warning(
                    "Allocation reschedule failed - interval taken",
                    extra={
                        "allocation_id": str(allocation.id),
                        "resource_id": str(allocation.resource_id),
                        "start": start.isoformat(),
                        "end": end.isoformat(),
                        "conflicting_ids": [str(c.id) for c in conflicts],
                    }
                )
                metrics_collector.record_allocation_conflict(ItemType(allocation.item_type).value, "reschedule")
                raise AllocationConflictError(
                    resource_id=str(allocation.resource_id),
                    conflicting_ids=sorted(str(c.id) for c in conflicts),
                )

            previous = (allocation.starts_at, allocation.ends_at)
            allocation.starts_at = start
            allocation.ends_at = end
            allocation = await self.allocations.save(allocation)

        logger.info(
            "Allocation rescheduled",
            extra={
                "allocation_id": str(allocation.id),
                "resource_id": str(allocation.resource_id),
                "previous_start": previous[0].isoformat(),
                "previous_end": previous[1].isoformat(),
                "start": start.isoformat(),
                "end": end.isoformat(),
            }
        )

        return allocation

    async def transition(
        self,
        allocation_id: UUID | str,
        target_status: AllocationStatus | str,
        reason: Optional[str] = None,
    ) -> Allocation:
        """
        Move an allocation along its lifecycle.

        pending -> confirmed -> checked_in -> checked_out; pending or
        confirmed -> cancelled; confirmed -> no_show. Check-in is refused
        before the allocation's start date.

        Raises:
            DomainValidationError: INVALID_STATUS for an unknown target
            NotFoundError: If the allocation does not exist
            InvalidStatusTransitionError: For any transition not listed above
            ConflictError: CHECK_IN_TOO_EARLY before the start date
        """
        target = parse_status(target_status)
        allocation = await self.get_allocation(allocation_id)
        current = AllocationStatus(allocation.status)

        if not can_transition(current, target):
            logger.warning(
                "Rejected allocation status transition",
                extra={
                    "allocation_id": str(allocation.id),
                    "current_status": current.value,
                    "target_status": target.value,
                }
            )
            raise InvalidStatusTransitionError(
                allocation_id=str(allocation.id),
                current_status=current.value,
                target_status=target.value,
            )

        if target == AllocationStatus.CHECKED_IN and allocation.starts_at.date() > self.clock().date():
            raise ConflictError(
                detail=f"Allocation {allocation.id} cannot be checked in before {allocation.starts_at.date().isoformat()}",
                code="CHECK_IN_TOO_EARLY",
                conflicting_resource={
                    "allocation_id": str(allocation.id),
                    "starts_at": allocation.starts_at.isoformat(),
                },
            )

        allocation.status = target.value
        if target == AllocationStatus.CANCELLED:
            allocation.cancellation_reason = reason

        allocation = await self.allocations.save(allocation)
        metrics_collector.record_status_transition(current.value, target.value)

        logger.info(
            "Allocation status changed",
            extra={
                "allocation_id": str(allocation.id),
                "from_status": current.value,
                "to_status": target.value,
                "reason": reason,
            }
        )

        return allocation

    async def apply_transition(self, request: TransitionAllocationRequest) -> Allocation:
        return await self.transition(request.allocation_id, request.target_status, request.reason)

    async def confirm(self, allocation_id: UUID | str) -> Allocation:
        return await self.transition(allocation_id, AllocationStatus.CONFIRMED)

    async def check_in(self, allocation_id: UUID | str) -> Allocation:
        return await self.transition(allocation_id, AllocationStatus.CHECKED_IN)

    async def check_out(self, allocation_id: UUID | str) -> Allocation:
        return await self.transition(allocation_id, AllocationStatus.CHECKED_OUT)

    async def cancel(self, allocation_id: UUID | str, reason: Optional[str] = None) -> Allocation:
        return await self.transition(allocation_id, AllocationStatus.CANCELLED, reason)

    async def mark_no_show(self, allocation_id: UUID | str) -> Allocation:
        return await self.transition(allocation_id, AllocationStatus.NO_SHOW)
