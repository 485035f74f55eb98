"""Storage interfaces consumed by the allocation and pricing services.

Services never reach for a session or a global container; they receive an
implementation of these protocols through their constructor.
"""

from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID

from ..models.allocation import Allocation
from ..models.enums import ItemType, RateType
from ..models.rate import RateModifier, RateRule


class AllocationRepository(Protocol):
    """Read/write access to allocation records."""

    async def get(self, allocation_id: UUID) -> Optional[Allocation]:
        """Return one allocation or None."""
        ...

    async def list_for_resource(
        self,
        resource_id: UUID,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
        include_released: bool = False,
    ) -> list[Allocation]:
        """
        List allocations for a resource.

        When a window is given, only allocations intersecting
        [window_start, window_end) are returned. Cancelled and no-show
        allocations are skipped unless ``include_released`` is set.
        """
        ...

    async def confirmation_code_exists(self, code: str) -> bool:
        """Return True if a confirmation code is already taken."""
        ...

    async def lock_resource(self, resource_id: UUID) -> None:
        """Take a store-level lock on a resource until the next commit."""
        ...

    async def add(self, allocation: Allocation) -> Allocation:
        """Persist a new allocation and commit."""
        ...

    async def save(self, allocation: Allocation) -> Allocation:
        """Persist changes to an existing allocation and commit."""
        ...


class RateRepository(Protocol):
    """Read/write access to rate rules and their modifiers."""

    async def get(self, rate_id: UUID) -> Optional[RateRule]:
        ...

    async def list_rules(
        self,
        item_type: Optional[ItemType] = None,
        item_id: Optional[UUID] = None,
        include_wildcards: bool = False,
        rate_type: Optional[RateType] = None,
        active_only: bool = False,
    ) -> list[RateRule]:
        """
        List rules matching the filters.

        ``item_id`` keeps rules bound to that resource; with
        ``include_wildcards`` rules with no item id are kept as well.
        """
        ...

    async def add(self, rule: RateRule) -> RateRule:
        ...

    async def save(self, rule: RateRule) -> RateRule:
        ...

    async def delete(self, rule: RateRule) -> None:
        """Delete a rule together with its modifiers."""
        ...

    async def list_modifiers(self, rate_id: UUID) -> list[RateModifier]:
        """Modifiers of a rule in insertion order."""
        ...

    async def get_modifier(self, modifier_id: UUID) -> Optional[RateModifier]:
        ...

    async def add_modifier(self, modifier: RateModifier) -> RateModifier:
        """Append a modifier; the store assigns its position."""
        ...

    async def delete_modifier(self, modifier: RateModifier) -> None:
        ...
