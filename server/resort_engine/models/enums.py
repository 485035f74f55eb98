"""Enumerations shared by the allocation and rate models."""

from enum import Enum


class ItemType(str, Enum):
    """Kinds of bookable resources."""
    ROOM = "room"
    CHALET = "chalet"
    POOL_SESSION = "pool_session"
    STAFF_SHIFT = "staff_shift"
    AMENITY = "amenity"
    RESTAURANT_TABLE = "restaurant_table"


class AllocationStatus(str, Enum):
    """Allocation lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that no longer hold the resource.
RELEASED_STATUSES = frozenset({AllocationStatus.CANCELLED, AllocationStatus.NO_SHOW})


class RateType(str, Enum):
    """Rate rule classification."""
    STANDARD = "standard"
    SEASONAL = "seasonal"
    PROMOTIONAL = "promotional"
    EVENT = "event"
    PACKAGE = "package"


class ModifierType(str, Enum):
    """How a rate modifier adjusts the running price."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class DayOfWeek(str, Enum):
    """Day names in ``date.weekday()`` order."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def for_weekday(cls, weekday: int) -> "DayOfWeek":
        """Map ``date.weekday()`` (Monday == 0) to a day name."""
        return list(cls)[weekday]


def is_released(status: AllocationStatus | str) -> bool:
    """True for statuses that no longer hold the resource."""
    return AllocationStatus(status) in RELEASED_STATUSES
