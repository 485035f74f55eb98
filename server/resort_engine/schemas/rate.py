"""Rate administration Pydantic schemas.

Field types are kept loose on purpose where the rate service owns the check,
so each failure surfaces with its own error code instead of a generic 422.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateRateRequest(BaseModel):
    """Request schema for creating a rate rule."""

    name: str = Field(..., description="Rule name, 2 to 100 characters")
    description: str = Field("", description="Up to 500 characters")
    rate_type: str = Field("standard", description="standard, seasonal, promotional, event or package")
    base_price: Decimal = Field(..., description="Nightly base price, non-negative")
    currency: Optional[str] = Field(None, description="ISO 4217 code; the configured default when omitted")
    applicable_item_type: str = Field(..., description="Kind of resource the rule prices")
    applicable_item_id: Optional[str] = Field(None, description="Concrete resource, or null for every resource of the type")
    start_date: Optional[date] = Field(None, description="First applicable date, inclusive")
    end_date: Optional[date] = Field(None, description="Last applicable date, inclusive")
    days_of_week: list[str] = Field(default_factory=list, description="Applicable weekdays; empty means every day")
    min_stay: int = Field(1, description="Minimum nights")
    max_stay: Optional[int] = Field(None, description="Maximum nights")
    priority: int = Field(0, description="Higher wins")
    is_active: bool = Field(True, description="Inactive rules are never selected")


class UpdateRateRequest(BaseModel):
    """
    Request schema for a partial rate rule update.

    Only fields present in the request body are changed; an explicit null
    clears an optional field.
    """

    rate_id: str = Field(..., description="Rule to update")
    name: Optional[str] = None
    description: Optional[str] = None
    rate_type: Optional[str] = None
    base_price: Optional[Decimal] = None
    currency: Optional[str] = None
    applicable_item_type: Optional[str] = None
    applicable_item_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: Optional[list[str]] = None
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = None


class RateIdRequest(BaseModel):
    """Request schema naming a single rate rule."""

    rate_id: str = Field(..., description="Rate rule ID")


class ListRatesRequest(BaseModel):
    """Request schema for filtering rate rules."""

    rate_type: Optional[str] = Field(None, description="Only rules of this type")
    item_type: Optional[str] = Field(None, description="Only rules for this kind of resource")
    item_id: Optional[str] = Field(None, description="Only rules bound to this resource")
    active_only: bool = Field(False, description="Skip inactive rules")


class AddModifierRequest(BaseModel):
    """Request schema for appending a modifier to a rate rule."""

    rate_id: str = Field(..., description="Rule to extend")
    name: str = Field(..., min_length=1, max_length=100, description="Modifier name")
    modifier_type: str = Field(..., description="'percentage' or 'fixed'")
    value: Decimal = Field(..., description="Percent in [-100, 1000], or a fixed amount")
    condition: Optional[str] = Field(None, max_length=500, description="Informational; never evaluated")


class RemoveModifierRequest(BaseModel):
    """Request schema for removing a modifier."""

    modifier_id: str = Field(..., description="Modifier to remove")


class RateModifier(BaseModel):
    """Rate modifier response schema."""

    id: str = Field(..., description="Unique modifier ID")
    rate_id: str = Field(..., description="Owning rule")
    name: str = Field(..., description="Modifier name")
    modifier_type: str = Field(..., description="'percentage' or 'fixed'")
    value: Decimal = Field(..., description="Modifier value")
    condition: Optional[str] = Field(None, description="Informational condition")
    position: int = Field(..., description="Application order within the rule")

    model_config = ConfigDict(from_attributes=True)


class RateRule(BaseModel):
    """Rate rule response schema."""

    id: str = Field(..., description="Unique rule ID")
    name: str
    description: str
    rate_type: str
    base_price: Decimal
    currency: str
    applicable_item_type: str
    applicable_item_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: list[str] = Field(default_factory=list)
    min_stay: int
    max_stay: Optional[int] = None
    priority: int
    is_active: bool
    modifiers: list[RateModifier] = Field(default_factory=list, description="Modifiers in application order")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RateList(BaseModel):
    """List of rate rules."""

    items: list[RateRule] = Field(default_factory=list, description="Rules, highest priority first")


class ModifierList(BaseModel):
    """Modifiers of one rate rule."""

    rate_id: str
    items: list[RateModifier] = Field(default_factory=list)


class RateStats(BaseModel):
    """Catalog statistics."""

    total: int = Field(..., description="Number of rules")
    active: int = Field(..., description="Active rules")
    inactive: int = Field(..., description="Inactive rules")
    by_type: dict[str, int] = Field(default_factory=dict, description="Rule count per rate type")
    average_base_price: Decimal = Field(..., description="Mean base price, rounded to cents")


class RateReference(BaseModel):
    """Closed value lists used by rate administration forms."""

    rate_types: list[str]
    days_of_week: list[str]
    currencies: list[str]
    item_types: list[str]
    modifier_types: list[str]
