"""Allocation-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateAllocationRequest(BaseModel):
    """Request schema for reserving a resource over an interval."""

    resource_id: str = Field(..., description="Resource to reserve; also used as the item id for pricing")
    item_type: str = Field(..., description="Kind of resource")
    start: datetime = Field(..., description="Interval start, inclusive (ISO 8601)")
    end: datetime = Field(..., description="Interval end, exclusive (ISO 8601)")
    party_size: int = Field(1, description="Number of guests")
    guest_name: Optional[str] = Field(None, max_length=255, description="Guest name")
    notes: Optional[str] = Field(None, max_length=2000, description="Free-form notes")


class GetAllocationRequest(BaseModel):
    """Request schema for getting an allocation."""

    allocation_id: str = Field(..., description="Allocation to retrieve")


class ListAllocationsRequest(BaseModel):
    """Request schema for listing allocations of a resource."""

    resource_id: str = Field(..., description="Resource whose allocations to list")
    window_start: Optional[datetime] = Field(None, description="Only allocations ending after this instant")
    window_end: Optional[datetime] = Field(None, description="Only allocations starting before this instant")
    include_released: bool = Field(False, description="Include cancelled and no-show allocations")


class RescheduleAllocationRequest(BaseModel):
    """Request schema for moving an allocation to a new interval."""

    allocation_id: str = Field(..., description="Allocation to move")
    start: datetime = Field(..., description="New interval start, inclusive")
    end: datetime = Field(..., description="New interval end, exclusive")


class TransitionAllocationRequest(BaseModel):
    """Request schema for changing an allocation's status."""

    allocation_id: str = Field(..., description="Allocation to update")
    target_status: str = Field(..., description="Status to move to")
    reason: Optional[str] = Field(None, max_length=500, description="Reason, recorded on cancellation")


class Allocation(BaseModel):
    """Allocation response schema."""

    id: str = Field(..., description="Unique allocation ID")
    resource_id: str = Field(..., description="Reserved resource")
    item_type: str = Field(..., description="Kind of resource")
    starts_at: datetime = Field(..., description="Interval start (UTC)")
    ends_at: datetime = Field(..., description="Interval end (UTC)")
    status: str = Field(..., description="Allocation status")
    party_size: int = Field(..., ge=1, description="Number of guests")
    confirmation_code: str = Field(..., description="Confirmation code")
    guest_name: Optional[str] = Field(None, description="Guest name")
    notes: Optional[str] = Field(None, description="Free-form notes")
    cancellation_reason: Optional[str] = Field(None, description="Reason given on cancellation")
    total_price: Decimal = Field(..., description="Price snapshotted at creation")
    currency: str = Field(..., description="ISO 4217 currency code")
    applied_rate_id: Optional[str] = Field(None, description="Rate rule used for the snapshot")
    created_at: Optional[datetime] = Field(None, description="Creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")

    model_config = ConfigDict(from_attributes=True)


class AllocationList(BaseModel):
    """List of allocations."""

    items: list[Allocation] = Field(default_factory=list, description="Allocations ordered by start")
