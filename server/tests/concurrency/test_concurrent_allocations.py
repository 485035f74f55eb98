"""Concurrency tests for allocation creation."""

import asyncio
from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from resort_engine.core.exceptions import AllocationConflictError
from resort_engine.models.enums import AllocationStatus
from resort_engine.schemas.allocation import CreateAllocationRequest, RescheduleAllocationRequest
from resort_engine.services.allocation_service import AllocationService


@pytest.mark.asyncio
async def test_concurrent_identical_requests_single_winner(allocation_service, allocation_repo, resource_id):
    """Of N simultaneous requests for one interval, exactly one succeeds."""
    num_concurrent_requests = 50

    async def create(guest: int):
        return await allocation_service.create_allocation(CreateAllocationRequest(
            resource_id=str(resource_id),
            item_type="chalet",
            start=datetime(2025, 7, 10, 15),
            end=datetime(2025, 7, 13, 11),
            guest_name=f"guest_{guest}",
        ))

    results = await asyncio.gather(*(create(i) for i in range(num_concurrent_requests)), return_exceptions=True)

    successes = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, AllocationConflictError)]
    assert len(successes) == 1
    assert len(conflicts) == num_concurrent_requests - 1
    assert all(c.conflicting_ids == [str(successes[0].id)] for c in conflicts)

    stored = await allocation_repo.list_for_resource(resource_id, include_released=True)
    assert len(stored) == 1


@pytest.mark.asyncio
async def test_concurrent_overlapping_requests_stay_disjoint(allocation_service, allocation_repo, resource_id):
    """Staggered overlapping requests never leave two live allocations sharing an instant."""
    base = datetime(2025, 7, 1)

    async def create(offset_hours: int):
        start = base + timedelta(hours=offset_hours)
        return await allocation_service.create_allocation(CreateAllocationRequest(
            resource_id=str(resource_id),
            item_type="room",
            start=start,
            end=start + timedelta(hours=30),
        ))

    results = await asyncio.gather(*(create(h) for h in range(0, 240, 6)), return_exceptions=True)

    unexpected = [r for r in results if isinstance(r, Exception) and not isinstance(r, AllocationConflictError)]
    assert unexpected == []

    stored = sorted(await allocation_repo.list_for_resource(resource_id), key=lambda a: a.starts_at)
    for earlier, later in zip(stored, stored[1:]):
        assert earlier.ends_at <= later.starts_at


@pytest.mark.asyncio
async def test_concurrent_requests_on_different_resources_all_succeed(allocation_service):
    resources = [uuid4() for _ in range(20)]

    results = await asyncio.gather(*(
        allocation_service.create_allocation(CreateAllocationRequest(
            resource_id=str(resource),
            item_type="room",
            start=datetime(2025, 7, 10),
            end=datetime(2025, 7, 12),
        ))
        for resource in resources
    ))

    assert {r.resource_id for r in results} == set(resources)
    assert len(allocation_service.locks) == 0


@pytest.mark.asyncio
async def test_concurrent_services_share_lock_registry(allocation_repo, facade, lock_registry, resource_id):
    """Separate service instances, as built per request, still serialize on the shared registry."""

    async def create(_):
        service = AllocationService(allocation_repo, facade, lock_registry)
        return await service.create_allocation(CreateAllocationRequest(
            resource_id=str(resource_id),
            item_type="chalet",
            start=datetime(2025, 7, 10),
            end=datetime(2025, 7, 12),
        ))

    results = await asyncio.gather(*(create(i) for i in range(25)), return_exceptions=True)

    assert sum(1 for r in results if not isinstance(r, Exception)) == 1
    assert sum(1 for r in results if isinstance(r, AllocationConflictError)) == 24


@pytest.mark.asyncio
async def test_cancel_racing_create_never_double_books(allocation_service, allocation_repo, resource_id):
    request = CreateAllocationRequest(
        resource_id=str(resource_id),
        item_type="chalet",
        start=datetime(2025, 7, 10),
        end=datetime(2025, 7, 12),
    )
    first = await allocation_service.create_allocation(request)

    results = await asyncio.gather(
        allocation_service.cancel(first.id),
        *(allocation_service.create_allocation(request) for _ in range(10)),
        return_exceptions=True,
    )

    assert results[0].status == AllocationStatus.CANCELLED.value
    live = await allocation_repo.list_for_resource(resource_id)
    assert len(live) <= 1


@pytest.mark.asyncio
async def test_concurrent_reschedules_into_same_slot(allocation_service, allocation_repo, resource_id):
    created = []
    for day in (1, 5, 9):
        created.append(await allocation_service.create_allocation(CreateAllocationRequest(
            resource_id=str(resource_id),
            item_type="room",
            start=datetime(2025, 7, day),
            end=datetime(2025, 7, day + 2),
        )))

    results = await asyncio.gather(*(
        allocation_service.reschedule_allocation(RescheduleAllocationRequest(
            allocation_id=str(allocation.id),
            start=datetime(2025, 7, 20),
            end=datetime(2025, 7, 22),
        ))
        for allocation in created
    ), return_exceptions=True)

    assert sum(1 for r in results if not isinstance(r, Exception)) == 1
    stored = await allocation_repo.list_for_resource(resource_id, datetime(2025, 7, 20), datetime(2025, 7, 22))
    assert len(stored) == 1
