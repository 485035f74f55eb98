"""Rate rule and rate modifier model definitions."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .enums import DayOfWeek, ItemType, ModifierType, RateType


class RateRule(Base):
    """A conditional pricing policy with applicability filters and a priority."""

    __tablename__ = "rate_rules"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rate_type: Mapped[RateType] = mapped_column(String(20), nullable=False, default=RateType.STANDARD)

    # Nightly price
    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    # Applicability; a null item id matches every resource of the type
    applicable_item_type: Mapped[ItemType] = mapped_column(String(32), nullable=False, index=True)
    applicable_item_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    days_of_week: Mapped[list[DayOfWeek]] = mapped_column(JSON, nullable=False, default=list)
    min_stay: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_stay: Mapped[int | None] = mapped_column(Integer, nullable=True)

    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

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
        CheckConstraint("base_price >= 0", name="ck_rate_rule_base_price_non_negative"),
        CheckConstraint("min_stay >= 1", name="ck_rate_rule_min_stay_positive"),
        CheckConstraint(
            "max_stay IS NULL OR max_stay >= min_stay",
            name="ck_rate_rule_stay_bounds_ordered"
        ),
        CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR start_date <= end_date",
            name="ck_rate_rule_date_range_ordered"
        ),
        CheckConstraint("length(currency) = 3", name="ck_rate_rule_currency_length"),
    )

    @property
    def is_specific(self) -> bool:
        """True when the rule is bound to one concrete resource."""
        return self.applicable_item_id is not None

    def __repr__(self) -> str:
        return (
            f"<RateRule(id={self.id}, name='{self.name}', item_type={self.applicable_item_type}, "
            f"item_id={self.applicable_item_id}, priority={self.priority}, active={self.is_active})>"
        )


class RateModifier(Base):
    """A stackable percentage or fixed adjustment attached to a rate rule."""

    __tablename__ = "rate_modifiers"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    rate_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("rate_rules.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    modifier_type: Mapped[ModifierType] = mapped_column(String(20), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    # Informational only; conditions are not evaluated by the engine
    condition: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Insertion order within the rule; modifiers are applied in this order
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("rate_id", "position", name="uq_rate_modifier_position"),
        CheckConstraint(
            "modifier_type != 'percentage' OR (value >= -100 AND value <= 1000)",
            name="ck_rate_modifier_percentage_range"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<RateModifier(id={self.id}, rate_id={self.rate_id}, name='{self.name}', "
            f"type={self.modifier_type}, value={self.value}, position={self.position})>"
        )
