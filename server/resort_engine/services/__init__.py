"""Allocation, availability and pricing services."""

from .allocation_service import AllocationService
from .availability_service import AvailabilityPricingFacade
from .interval_conflicts import IntervalConflictDetector
from .modifier_engine import ModifierEngine, apply_modifiers
from .rate_resolver import RateResolver
from .rate_service import RateService
from .rule_catalog import RuleCatalog

__all__ = [
    "AllocationService",
    "AvailabilityPricingFacade",
    "IntervalConflictDetector",
    "ModifierEngine",
    "RateResolver",
    "RateService",
    "RuleCatalog",
    "apply_modifiers",
]
