"""Unit tests for interval arithmetic and conflict detection."""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from resort_engine.core.exceptions import DomainValidationError
from resort_engine.models.allocation import Allocation
from resort_engine.models.enums import AllocationStatus
from resort_engine.repositories.memory import InMemoryAllocationRepository
from resort_engine.services.interval_conflicts import (
    IntervalConflictDetector,
    blocked_dates_for,
    covered_dates,
    intervals_overlap,
    to_naive_utc,
    validate_interval,
)


def _allocation(resource_id, start, end, status=AllocationStatus.CONFIRMED):
    return Allocation(
        id=uuid4(),
        resource_id=resource_id,
        item_type="chalet",
        starts_at=start,
        ends_at=end,
        status=status.value,
        party_size=2,
        confirmation_code=uuid4().hex[:8].upper(),
    )


def test_touching_intervals_do_not_overlap():
    """Checkout at 11:00 and check-in at 11:00 share no instant."""
    a_start, a_end = datetime(2025, 7, 1, 15), datetime(2025, 7, 3, 11)
    b_start, b_end = datetime(2025, 7, 3, 11), datetime(2025, 7, 5, 11)

    assert not intervals_overlap(a_start, a_end, b_start, b_end)
    assert not intervals_overlap(b_start, b_end, a_start, a_end)


def test_nested_and_partial_intervals_overlap():
    outer = (datetime(2025, 7, 1), datetime(2025, 7, 10))
    assert intervals_overlap(*outer, datetime(2025, 7, 3), datetime(2025, 7, 4))
    assert intervals_overlap(*outer, datetime(2025, 6, 28), datetime(2025, 7, 2))
    assert intervals_overlap(*outer, datetime(2025, 7, 9), datetime(2025, 7, 12))


@pytest.mark.parametrize("start,end", [
    (datetime(2025, 7, 2), datetime(2025, 7, 1)),
    (datetime(2025, 7, 2), datetime(2025, 7, 2)),
])
def test_validate_interval_rejects_empty_or_inverted(start, end):
    with pytest.raises(DomainValidationError) as exc_info:
        validate_interval(start, end)
    assert exc_info.value.code == "INVALID_TIME_RANGE"
    assert exc_info.value.status_code == 400


def test_to_naive_utc_converts_aware_datetimes():
    aware = datetime(2025, 7, 1, 14, 0, tzinfo=timezone(timedelta(hours=4)))
    assert to_naive_utc(aware) == datetime(2025, 7, 1, 10, 0)
    assert to_naive_utc(datetime(2025, 7, 1, 10, 0)) == datetime(2025, 7, 1, 10, 0)


def test_covered_dates_use_night_semantics():
    """A stay covers the nights it spans; the checkout date stays free."""
    assert covered_dates(datetime(2025, 7, 10, 15), datetime(2025, 7, 12, 11)) == [
        date(2025, 7, 10),
        date(2025, 7, 11),
    ]
    # Same-day slot covers its one date
    assert covered_dates(datetime(2025, 7, 10, 9), datetime(2025, 7, 10, 12)) == [date(2025, 7, 10)]


def test_blocked_dates_skip_released_allocations():
    resource_id = uuid4()
    allocations = [
        _allocation(resource_id, datetime(2025, 7, 10, 15), datetime(2025, 7, 12, 11)),
        _allocation(resource_id, datetime(2025, 7, 20, 15), datetime(2025, 7, 22, 11), AllocationStatus.CANCELLED),
        _allocation(resource_id, datetime(2025, 7, 25, 15), datetime(2025, 7, 26, 11), AllocationStatus.NO_SHOW),
    ]

    blocked = blocked_dates_for(allocations, datetime(2025, 7, 1), datetime(2025, 8, 1))

    assert blocked == [date(2025, 7, 10), date(2025, 7, 11)]


def test_blocked_dates_are_clipped_to_window():
    resource_id = uuid4()
    allocations = [_allocation(resource_id, datetime(2025, 6, 28, 15), datetime(2025, 7, 3, 11))]

    blocked = blocked_dates_for(allocations, datetime(2025, 7, 1), datetime(2025, 7, 10))

    assert blocked == [date(2025, 7, 1), date(2025, 7, 2)]


@pytest.mark.asyncio
async def test_find_conflicts_returns_only_live_overlaps():
    resource_id = uuid4()
    live = _allocation(resource_id, datetime(2025, 7, 10), datetime(2025, 7, 12))
    cancelled = _allocation(resource_id, datetime(2025, 7, 10), datetime(2025, 7, 12), AllocationStatus.CANCELLED)
    other_resource = _allocation(uuid4(), datetime(2025, 7, 10), datetime(2025, 7, 12))
    detector = IntervalConflictDetector(InMemoryAllocationRepository([live, cancelled, other_resource]))

    conflicts = await detector.find_conflicts(resource_id, datetime(2025, 7, 11), datetime(2025, 7, 13))

    assert [c.id for c in conflicts] == [live.id]


@pytest.mark.asyncio
async def test_find_conflicts_excludes_given_allocation():
    resource_id = uuid4()
    existing = _allocation(resource_id, datetime(2025, 7, 10), datetime(2025, 7, 12))
    detector = IntervalConflictDetector(InMemoryAllocationRepository([existing]))

    conflicts = await detector.find_conflicts(
        resource_id,
        datetime(2025, 7, 11),
        datetime(2025, 7, 14),
        exclude_allocation_id=existing.id,
    )

    assert conflicts == []


@pytest.mark.asyncio
async def test_find_conflicts_allows_back_to_back():
    resource_id = uuid4()
    existing = _allocation(resource_id, datetime(2025, 7, 10, 15), datetime(2025, 7, 12, 11))
    detector = IntervalConflictDetector(InMemoryAllocationRepository([existing]))

    assert await detector.find_conflicts(resource_id, datetime(2025, 7, 12, 11), datetime(2025, 7, 14, 11)) == []
    assert await detector.find_conflicts(resource_id, datetime(2025, 7, 8, 15), datetime(2025, 7, 10, 15)) == []


def test_checkout_date_is_blocked_when_window_only_touches_it():
    resource_id = uuid4()
    allocations = [_allocation(resource_id, datetime(2025, 7, 10, 15), datetime(2025, 7, 13, 11))]

    # Same-day turnover still leaves the checkout date free for a later window
    assert blocked_dates_for(allocations, datetime(2025, 7, 13, 11), datetime(2025, 7, 14, 11)) == []
    assert blocked_dates_for(allocations, datetime(2025, 7, 13, 9), datetime(2025, 7, 13, 10)) == [date(2025, 7, 13)]


@pytest.mark.asyncio
async def test_blocked_dates_rejects_oversized_window():
    detector = IntervalConflictDetector(InMemoryAllocationRepository(), max_window_days=31)

    with pytest.raises(DomainValidationError) as exc_info:
        await detector.blocked_dates(uuid4(), datetime(2025, 1, 1), datetime(2025, 3, 1))

    assert exc_info.value.code == "INVALID_WINDOW"


@pytest.mark.asyncio
async def test_blocked_dates_for_resource():
    resource_id = uuid4()
    repo = InMemoryAllocationRepository([
        _allocation(resource_id, datetime(2025, 7, 10, 9), datetime(2025, 7, 10, 12)),
        _allocation(resource_id, datetime(2025, 7, 15, 15), datetime(2025, 7, 18, 11)),
    ])
    detector = IntervalConflictDetector(repo, max_window_days=366)

    blocked = await detector.blocked_dates(resource_id, datetime(2025, 7, 1), datetime(2025, 8, 1))

    assert blocked == [date(2025, 7, 10), date(2025, 7, 15), date(2025, 7, 16), date(2025, 7, 17)]
