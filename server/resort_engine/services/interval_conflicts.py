"""Half-open interval arithmetic and conflict detection over allocations."""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional
from uuid import UUID

from ..core.exceptions import DomainValidationError
from ..models.allocation import Allocation
from ..models.enums import is_released
from ..repositories.base import AllocationRepository

logger = logging.getLogger(__name__)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC; naive input is taken to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def validate_interval(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """
    Reject empty or inverted intervals and return the normalized pair.

    Raises:
        DomainValidationError: INVALID_TIME_RANGE if start >= end
    """
    start, end = to_naive_utc(start), to_naive_utc(end)
    if start >= end:
        raise DomainValidationError(
            code="INVALID_TIME_RANGE",
            detail=f"Interval start {start.isoformat()} must be before end {end.isoformat()}",
            field="start",
        )
    return start, end


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """True iff [start_a, end_a) and [start_b, end_b) share an instant."""
    return start_a < end_b and start_b < end_a


def holds_resource(allocation: Allocation) -> bool:
    """Cancelled and no-show allocations no longer occupy their resource."""
    return not is_released(allocation.status)


def find_overlapping(
    allocations: Iterable[Allocation],
    start: datetime,
    end: datetime,
    exclude_allocation_id: Optional[UUID] = None,
) -> list[Allocation]:
    """
    Return the live allocations whose interval overlaps [start, end).

    The caller guarantees start < end and that all allocations belong to
    the same resource.
    """
    return [
        allocation
        for allocation in allocations
        if holds_resource(allocation)
        and allocation.id != exclude_allocation_id
        and intervals_overlap(allocation.starts_at, allocation.ends_at, start, end)
    ]


def covered_dates(start: datetime, end: datetime) -> list[date]:
    """
    Calendar dates occupied by [start, end).

    Multi-day intervals cover their nights: the end date stays free so a
    checkout and a check-in can share a day. A same-day interval covers its
    one date.
    """
    first = start.date()
    last_exclusive = end.date()
    if last_exclusive <= first:
        return [first]
    return [first + timedelta(days=offset) for offset in range((last_exclusive - first).days)]


def blocked_dates_for(
    allocations: Iterable[Allocation],
    window_start: datetime,
    window_end: datetime,
) -> list[date]:
    """
    Sorted dates inside the window occupied by any live allocation intersecting it.

    An allocation that overlaps the window only on its checkout date still
    blocks that date, so a conflicting window never reports nothing to avoid.
    """
    window_dates = set(covered_dates(window_start, window_end))
    blocked: set[date] = set()
    for allocation in find_overlapping(allocations, window_start, window_end):
        nights = set(covered_dates(allocation.starts_at, allocation.ends_at)) & window_dates
        if not nights:
            overlap_start = max(allocation.starts_at, window_start)
            overlap_end = min(allocation.ends_at, window_end)
            nights = set(covered_dates(overlap_start, overlap_end)) & window_dates
        blocked.update(nights)
    return sorted(blocked)


class IntervalConflictDetector:
    """Finds live allocations that collide with a candidate interval."""

    def __init__(self, allocations: AllocationRepository, max_window_days: Optional[int] = None):
        self.allocations = allocations
        self.max_window_days = max_window_days

    async def find_conflicts(
        self,
        resource_id: UUID,
        start: datetime,
        end: datetime,
        exclude_allocation_id: Optional[UUID] = None,
    ) -> list[Allocation]:
        """
        Find live allocations on a resource overlapping [start, end).

        Args:
            resource_id: Resource to inspect
            start: Interval start (inclusive)
            end: Interval end (exclusive)
            exclude_allocation_id: Allocation left out of the comparison,
                used when re-validating an allocation being edited

        Returns:
            Conflicting allocations, in no guaranteed order

        Raises:
            DomainValidationError: INVALID_TIME_RANGE if start >= end
        """
        start, end = validate_interval(start, end)

        candidates = await self.allocations.list_for_resource(
            resource_id,
            window_start=start,
            window_end=end,
        )
        conflicts = find_overlapping(candidates, start, end, exclude_allocation_id)

        if conflicts:
            logger.info(
                "Interval conflicts detected",
                extra={
                    "resource_id": str(resource_id),
                    "start": start.isoformat(),
                    "end": end.isoformat(),
                    "conflict_count": len(conflicts),
                    "excluded_allocation_id": str(exclude_allocation_id) if exclude_allocation_id else None,
                }
            )

        return conflicts

    async def blocked_dates(self, resource_id: UUID, window_start: datetime, window_end: datetime) -> list[date]:
        """
        Dates within the window a caller should avoid for this resource.

        Raises:
            DomainValidationError: INVALID_TIME_RANGE for an empty window,
                INVALID_WINDOW when the window exceeds the configured span
        """
        window_start, window_end = validate_interval(window_start, window_end)

        if self.max_window_days is not None and window_end - window_start > timedelta(days=self.max_window_days):
            raise DomainValidationError(
                code="INVALID_WINDOW",
                detail=f"Blocked-date window cannot exceed {self.max_window_days} days",
                field="window_end",
            )

        allocations = await self.allocations.list_for_resource(
            resource_id,
            window_start=window_start,
            window_end=window_end,
        )
        return blocked_dates_for(allocations, window_start, window_end)
