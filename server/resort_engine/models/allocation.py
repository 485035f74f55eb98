"""Allocation model definition."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .enums import AllocationStatus, ItemType


class Allocation(Base):
    """One reservation of a resource over the half-open interval [starts_at, ends_at)."""

    __tablename__ = "allocations"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Resource identity
    resource_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    item_type: Mapped[ItemType] = mapped_column(String(32), nullable=False, index=True)

    # Interval, stored as naive UTC
    starts_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    status: Mapped[AllocationStatus] = mapped_column(
        String(20),
        nullable=False,
        default=AllocationStatus.PENDING,
        index=True
    )

    # Booking details
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    confirmation_code: Mapped[str] = mapped_column(String(16), nullable=False, unique=True)
    guest_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Price snapshot taken at creation; never recomputed from rules
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    applied_rate_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("starts_at < ends_at", name="ck_allocation_interval_ordered"),
        CheckConstraint("party_size > 0", name="ck_allocation_party_size_positive"),
        CheckConstraint("total_price >= 0", name="ck_allocation_total_price_non_negative"),
        Index("ix_allocations_resource_interval", "resource_id", "starts_at", "ends_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Allocation(id={self.id}, resource_id={self.resource_id}, "
            f"starts_at={self.starts_at}, ends_at={self.ends_at}, status={self.status})>"
        )
