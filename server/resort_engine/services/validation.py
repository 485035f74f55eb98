"""Synchronous input checks shared by the engine services.

Each check raises DomainValidationError with its own machine-readable code
and runs before any store access.
"""

from typing import Optional
from uuid import UUID

from ..core.exceptions import DomainValidationError
from ..models.enums import AllocationStatus, ItemType


def parse_uuid(value: UUID | str, field: str = "id") -> UUID:
    """Parse an identifier, rejecting malformed ones with INVALID_ID."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise DomainValidationError(
            code="INVALID_ID",
            detail=f"Malformed identifier for {field}: {value!r}",
            field=field,
        ) from None


def parse_optional_uuid(value: UUID | str | None, field: str = "id") -> Optional[UUID]:
    if value is None or value == "":
        return None
    return parse_uuid(value, field)


def parse_item_type(value: ItemType | str) -> ItemType:
    try:
        return ItemType(value)
    except ValueError:
        raise DomainValidationError(
            code="INVALID_ITEM_TYPE",
            detail=f"Unknown item type: {value!r}",
            field="item_type",
        ) from None


def parse_status(value: AllocationStatus | str) -> AllocationStatus:
    try:
        return AllocationStatus(value)
    except ValueError:
        raise DomainValidationError(
            code="INVALID_STATUS",
            detail=f"Unknown allocation status: {value!r}",
            field="status",
        ) from None


def validate_nights(nights: int) -> int:
    if nights < 1:
        raise DomainValidationError(
            code="INVALID_NIGHTS",
            detail="Stay length must be at least 1 night",
            field="nights",
        )
    return nights


def validate_party_size(party_size: int) -> int:
    if party_size < 1:
        raise DomainValidationError(
            code="INVALID_PARTY_SIZE",
            detail="Party size must be at least 1",
            field="party_size",
        )
    return party_size


def validate_currency(currency: str, supported: list[str]) -> str:
    code = (currency or "").upper()
    if code not in supported:
        raise DomainValidationError(
            code="INVALID_CURRENCY",
            detail=f"Unsupported currency: {currency}",
            field="currency",
        )
    return code
