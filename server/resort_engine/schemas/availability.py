"""Availability and pricing Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class AvailabilityRequest(BaseModel):
    """Request schema for a combined availability and price check."""

    resource_id: str = Field(..., description="Resource to check")
    item_type: str = Field(..., description="Kind of resource, e.g. 'chalet'")
    item_id: Optional[str] = Field(
        None, description="Id used for rate matching; defaults to resource_id, as allocations are priced"
    )
    start: datetime = Field(..., description="Interval start, inclusive (ISO 8601)")
    end: datetime = Field(..., description="Interval end, exclusive (ISO 8601)")
    party_size: int = Field(1, description="Number of guests")
    exclude_allocation_id: Optional[str] = Field(
        None, description="Allocation left out of conflict detection, when re-checking an edit"
    )


class QuoteRequest(BaseModel):
    """Request schema for pricing without a conflict check."""

    item_type: str = Field(..., description="Kind of resource")
    item_id: Optional[str] = Field(None, description="Concrete resource, or null for the type in general")
    on_date: date = Field(..., description="Target date (first night)")
    nights: int = Field(1, description="Stay length in nights")


class BlockedDatesRequest(BaseModel):
    """Request schema for listing blocked calendar dates."""

    resource_id: str = Field(..., description="Resource to inspect")
    window_start: datetime = Field(..., description="Window start, inclusive")
    window_end: datetime = Field(..., description="Window end, exclusive")


class AppliedModifierLine(BaseModel):
    """One modifier step in a price breakdown."""

    name: str = Field(..., description="Modifier name")
    type: str = Field(..., description="'percentage' or 'fixed'")
    value: Decimal = Field(..., description="Configured modifier value")
    amount: Decimal = Field(..., description="Signed change this step made to the running price")


class PricingResult(BaseModel):
    """Price computed for an interval from the selected rate rule."""

    base_price: Decimal = Field(..., description="Nightly base price times nights, before modifiers")
    modifiers: list[AppliedModifierLine] = Field(default_factory=list, description="Modifiers in applied order")
    total_price: Decimal = Field(..., description="Final price, floored at zero and rounded to cents")
    currency: str = Field(..., description="ISO 4217 currency code")
    applied_rule_id: Optional[str] = Field(None, description="Selected rule, or null for the zero-price fallback")
    nights: int = Field(..., description="Stay length used for pricing")


class ConflictSummary(BaseModel):
    """A live allocation blocking the requested interval."""

    id: str = Field(..., description="Allocation ID")
    starts_at: datetime = Field(..., description="Allocation start (UTC)")
    ends_at: datetime = Field(..., description="Allocation end (UTC)")
    status: str = Field(..., description="Allocation status")


class AvailabilityResult(BaseModel):
    """Combined availability and pricing decision."""

    available: bool = Field(..., description="True when no live allocation overlaps the interval")
    conflicts: list[ConflictSummary] = Field(default_factory=list, description="Overlapping allocations")
    blocked_dates: list[date] = Field(default_factory=list, description="Dates in the interval already taken")
    pricing: PricingResult = Field(..., description="Price for the interval, computed regardless of availability")


class BlockedDatesResponse(BaseModel):
    """Blocked calendar dates for a resource."""

    resource_id: str = Field(..., description="Inspected resource")
    blocked_dates: list[date] = Field(default_factory=list, description="Sorted blocked dates")
