"""SQLAlchemy-backed repositories."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import AllocationConflictError
from ..models.allocation import Allocation
from ..models.enums import RELEASED_STATUSES, ItemType, RateType
from ..models.rate import RateModifier, RateRule

logger = logging.getLogger(__name__)

# Name of the PostgreSQL exclusion constraint created by the initial migration.
OVERLAP_CONSTRAINT = "ex_allocations_no_overlap"

_RELEASED_VALUES = [status.value for status in RELEASED_STATUSES]


class SqlAllocationRepository:
    """Allocation storage on top of an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def _is_postgresql(self) -> bool:
        return bool(self.db.bind) and self.db.bind.dialect.name == "postgresql"

    async def get(self, allocation_id: UUID) -> Optional[Allocation]:
        stmt = select(Allocation).where(Allocation.id == allocation_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_resource(
        self,
        resource_id: UUID,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
        include_released: bool = False,
    ) -> list[Allocation]:
        conditions = [Allocation.resource_id == resource_id]

        if not include_released:
            conditions.append(Allocation.status.not_in(_RELEASED_VALUES))

        # Half-open intersection with the window
        if window_end is not None:
            conditions.append(Allocation.starts_at < window_end)
        if window_start is not None:
            conditions.append(Allocation.ends_at > window_start)

        stmt = select(Allocation).where(and_(*conditions)).order_by(Allocation.starts_at)
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def confirmation_code_exists(self, code: str) -> bool:
        stmt = select(func.count(Allocation.id)).where(Allocation.confirmation_code == code)
        result = await self.db.execute(stmt)
        return (result.scalar() or 0) > 0

    async def lock_resource(self, resource_id: UUID) -> None:
        """
        Serialize writers on one resource across processes.

        Uses a transaction-scoped PostgreSQL advisory lock, released when the
        inserting transaction commits or rolls back. Other dialects (SQLite in
        tests) rely on the in-process lock alone.
        """
        if not self._is_postgresql:
            return

        await self.db.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:resource_id))"),
            {"resource_id": str(resource_id)}
        )
        logger.debug(
            "Acquired advisory lock for resource",
            extra={"resource_id": str(resource_id)}
        )

    async def add(self, allocation: Allocation) -> Allocation:
        self.db.add(allocation)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if OVERLAP_CONSTRAINT in str(e.orig):
                logger.warning(
                    "Allocation insert rejected by exclusion constraint",
                    extra={
                        "resource_id": str(allocation.resource_id),
                        "starts_at": allocation.starts_at.isoformat(),
                        "ends_at": allocation.ends_at.isoformat(),
                    }
                )
                raise AllocationConflictError(
                    resource_id=str(allocation.resource_id),
                    conflicting_ids=[]
                ) from e
            raise

        await self.db.refresh(allocation)
        return allocation

    async def save(self, allocation: Allocation) -> Allocation:
        self.db.add(allocation)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if OVERLAP_CONSTRAINT in str(e.orig):
                raise AllocationConflictError(
                    resource_id=str(allocation.resource_id),
                    conflicting_ids=[str(allocation.id)]
                ) from e
            raise

        await self.db.refresh(allocation)
        return allocation


class SqlRateRepository:
    """Rate rule and modifier storage on top of an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, rate_id: UUID) -> Optional[RateRule]:
        stmt = select(RateRule).where(RateRule.id == rate_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_rules(
        self,
        item_type: Optional[ItemType] = None,
        item_id: Optional[UUID] = None,
        include_wildcards: bool = False,
        rate_type: Optional[RateType] = None,
        active_only: bool = False,
    ) -> list[RateRule]:
        conditions = []

        if item_type is not None:
            conditions.append(RateRule.applicable_item_type == ItemType(item_type).value)

        if item_id is not None:
            if include_wildcards:
                conditions.append(or_(
                    RateRule.applicable_item_id == item_id,
                    RateRule.applicable_item_id.is_(None),
                ))
            else:
                conditions.append(RateRule.applicable_item_id == item_id)
        elif include_wildcards:
            conditions.append(RateRule.applicable_item_id.is_(None))

        if rate_type is not None:
            conditions.append(RateRule.rate_type == RateType(rate_type).value)

        if active_only:
            conditions.append(RateRule.is_active.is_(True))

        stmt = select(RateRule)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(RateRule.priority.desc(), RateRule.id)

        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def add(self, rule: RateRule) -> RateRule:
        self.db.add(rule)
        await self.db.commit()
        await self.db.refresh(rule)
        return rule

    async def save(self, rule: RateRule) -> RateRule:
        self.db.add(rule)
        await self.db.commit()
        await self.db.refresh(rule)
        return rule

    async def delete(self, rule: RateRule) -> None:
        # SQLite does not enforce ON DELETE CASCADE without a pragma
        await self.db.execute(delete(RateModifier).where(RateModifier.rate_id == rule.id))
        await self.db.delete(rule)
        await self.db.commit()

    async def list_modifiers(self, rate_id: UUID) -> list[RateModifier]:
        stmt = (
            select(RateModifier)
            .where(RateModifier.rate_id == rate_id)
            .order_by(RateModifier.position)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_modifier(self, modifier_id: UUID) -> Optional[RateModifier]:
        stmt = select(RateModifier).where(RateModifier.id == modifier_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def add_modifier(self, modifier: RateModifier) -> RateModifier:
        stmt = select(func.max(RateModifier.position)).where(RateModifier.rate_id == modifier.rate_id)
        result = await self.db.execute(stmt)
        last_position = result.scalar()
        modifier.position = 0 if last_position is None else last_position + 1

        self.db.add(modifier)
        await self.db.commit()
        await self.db.refresh(modifier)
        return modifier

    async def delete_modifier(self, modifier: RateModifier) -> None:
        await self.db.delete(modifier)
        await self.db.commit()
