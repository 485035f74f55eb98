"""Unit tests for the resource lock registry and the role table."""

import asyncio
from uuid import uuid4

import pytest

from resort_engine.core.locks import ResourceLockRegistry
from resort_engine.core.permissions import Permission, Role, has_permission, permissions_for


@pytest.mark.asyncio
async def test_hold_serializes_one_resource():
    registry = ResourceLockRegistry()
    resource_id = uuid4()
    events = []

    async def worker(name):
        async with registry.hold(resource_id):
            events.append(f"{name}-in")
            await asyncio.sleep(0)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    # No interleaving inside the critical section
    assert events in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


@pytest.mark.asyncio
async def test_different_resources_do_not_block():
    registry = ResourceLockRegistry()
    first, second = uuid4(), uuid4()

    async with registry.hold(first):
        # Would deadlock if the locks were shared
        async with registry.hold(second) as waited:
            assert waited >= 0
        assert len(registry) == 1


@pytest.mark.asyncio
async def test_locks_are_dropped_after_release():
    registry = ResourceLockRegistry()
    resource_id = uuid4()

    async with registry.hold(resource_id):
        assert len(registry) == 1

    assert len(registry) == 0


@pytest.mark.asyncio
async def test_lock_released_on_error():
    registry = ResourceLockRegistry()
    resource_id = uuid4()

    with pytest.raises(RuntimeError):
        async with registry.hold(resource_id):
            raise RuntimeError("boom")

    assert len(registry) == 0
    async with registry.hold(resource_id):
        pass


def test_customer_permissions():
    granted = permissions_for(["customer"])
    assert Permission.ALLOCATION_CREATE in granted
    assert Permission.PRICING_QUOTE in granted
    assert Permission.ALLOCATION_UPDATE not in granted
    assert Permission.RATE_MANAGE not in granted


def test_manager_can_cancel_but_not_manage_rates():
    assert has_permission(["manager"], Permission.ALLOCATION_CANCEL)
    assert not has_permission(["manager"], Permission.RATE_MANAGE)
    assert not has_permission(["staff"], Permission.ALLOCATION_CANCEL)


def test_admin_roles_hold_everything():
    for role in (Role.ADMIN, Role.SUPER_ADMIN):
        assert permissions_for([role.value]) == frozenset(Permission)


def test_roles_combine_and_unknown_roles_grant_nothing():
    assert permissions_for(["pirate"]) == frozenset()
    assert permissions_for(["customer", "pirate"]) == permissions_for(["customer"])
    assert Permission.RATE_READ in permissions_for(["customer", "staff"])
