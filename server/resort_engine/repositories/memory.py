"""In-memory repositories.

Used by tests and by local tooling that runs the engine without a database.
Every method yields to the event loop once, the way a real store suspends on
I/O, so interleavings between concurrent callers are observable.
"""

import asyncio
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from ..models.allocation import Allocation
from ..models.enums import AllocationStatus, ItemType, RateType, is_released
from ..models.rate import RateModifier, RateRule


def _stamp_new(record, now: datetime) -> None:
    if record.id is None:
        record.id = uuid4()
    if getattr(record, "created_at", None) is None:
        record.created_at = now
    if hasattr(record, "updated_at"):
        record.updated_at = now


class InMemoryAllocationRepository:
    """Allocation store backed by a dict."""

    def __init__(self, allocations: Optional[list[Allocation]] = None):
        self._allocations: dict[UUID, Allocation] = {}
        for allocation in allocations or []:
            _stamp_new(allocation, datetime.utcnow())
            if allocation.status is None:
                allocation.status = AllocationStatus.PENDING
            self._allocations[allocation.id] = allocation

    async def get(self, allocation_id: UUID) -> Optional[Allocation]:
        await asyncio.sleep(0)
        return self._allocations.get(allocation_id)

    async def list_for_resource(
        self,
        resource_id: UUID,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
        include_released: bool = False,
    ) -> list[Allocation]:
        await asyncio.sleep(0)
        found = []
        for allocation in self._allocations.values():
            if allocation.resource_id != resource_id:
                continue
            if not include_released and is_released(allocation.status):
                continue
            if window_end is not None and not allocation.starts_at < window_end:
                continue
            if window_start is not None and not allocation.ends_at > window_start:
                continue
            found.append(allocation)
        return sorted(found, key=lambda a: a.starts_at)

    async def confirmation_code_exists(self, code: str) -> bool:
        await asyncio.sleep(0)
        return any(a.confirmation_code == code for a in self._allocations.values())

    async def lock_resource(self, resource_id: UUID) -> None:
        # No cross-process writers; the in-process lock registry is sufficient.
        return None

    async def add(self, allocation: Allocation) -> Allocation:
        await asyncio.sleep(0)
        _stamp_new(allocation, datetime.utcnow())
        self._allocations[allocation.id] = allocation
        return allocation

    async def save(self, allocation: Allocation) -> Allocation:
        await asyncio.sleep(0)
        allocation.updated_at = datetime.utcnow()
        self._allocations[allocation.id] = allocation
        return allocation


class InMemoryRateRepository:
    """Rate rule and modifier store backed by dicts."""

    def __init__(self):
        self._rules: dict[UUID, RateRule] = {}
        self._modifiers: dict[UUID, RateModifier] = {}

    async def get(self, rate_id: UUID) -> Optional[RateRule]:
        await asyncio.sleep(0)
        return self._rules.get(rate_id)

    async def list_rules(
        self,
        item_type: Optional[ItemType] = None,
        item_id: Optional[UUID] = None,
        include_wildcards: bool = False,
        rate_type: Optional[RateType] = None,
        active_only: bool = False,
    ) -> list[RateRule]:
        await asyncio.sleep(0)
        rules = []
        for rule in self._rules.values():
            if item_type is not None and rule.applicable_item_type != item_type:
                continue
            if item_id is not None:
                matches = rule.applicable_item_id == item_id
                if not matches and not (include_wildcards and rule.applicable_item_id is None):
                    continue
            elif include_wildcards and rule.applicable_item_id is not None:
                continue
            if rate_type is not None and rule.rate_type != rate_type:
                continue
            if active_only and not rule.is_active:
                continue
            rules.append(rule)
        return sorted(rules, key=lambda r: (-r.priority, str(r.id)))

    async def add(self, rule: RateRule) -> RateRule:
        await asyncio.sleep(0)
        _stamp_new(rule, datetime.utcnow())
        self._rules[rule.id] = rule
        return rule

    async def save(self, rule: RateRule) -> RateRule:
        await asyncio.sleep(0)
        rule.updated_at = datetime.utcnow()
        self._rules[rule.id] = rule
        return rule

    async def delete(self, rule: RateRule) -> None:
        await asyncio.sleep(0)
        self._rules.pop(rule.id, None)
        for modifier_id in [m.id for m in self._modifiers.values() if m.rate_id == rule.id]:
            del self._modifiers[modifier_id]

    async def list_modifiers(self, rate_id: UUID) -> list[RateModifier]:
        await asyncio.sleep(0)
        modifiers = [m for m in self._modifiers.values() if m.rate_id == rate_id]
        return sorted(modifiers, key=lambda m: m.position)

    async def get_modifier(self, modifier_id: UUID) -> Optional[RateModifier]:
        await asyncio.sleep(0)
        return self._modifiers.get(modifier_id)

    async def add_modifier(self, modifier: RateModifier) -> RateModifier:
        await asyncio.sleep(0)
        positions = [m.position for m in self._modifiers.values() if m.rate_id == modifier.rate_id]
        modifier.position = max(positions) + 1 if positions else 0
        _stamp_new(modifier, datetime.utcnow())
        self._modifiers[modifier.id] = modifier
        return modifier

    async def delete_modifier(self, modifier: RateModifier) -> None:
        await asyncio.sleep(0)
        self._modifiers.pop(modifier.id, None)
