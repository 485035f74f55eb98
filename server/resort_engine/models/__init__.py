"""Models module exporting all database models."""

from .allocation import Allocation
from .enums import (
    RELEASED_STATUSES,
    AllocationStatus,
    DayOfWeek,
    ItemType,
    ModifierType,
    RateType,
    is_released,
)
from .rate import RateModifier, RateRule

__all__ = [
    # Allocation entity
    "Allocation",
    "AllocationStatus",
    "RELEASED_STATUSES",
    "is_released",
    "ItemType",

    # Pricing entities
    "RateRule",
    "RateModifier",
    "RateType",
    "ModifierType",
    "DayOfWeek",
]
