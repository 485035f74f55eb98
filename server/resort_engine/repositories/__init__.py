"""Repository interfaces and their SQLAlchemy and in-memory implementations."""

from .base import AllocationRepository, RateRepository
from .memory import InMemoryAllocationRepository, InMemoryRateRepository
from .sql import SqlAllocationRepository, SqlRateRepository

__all__ = [
    "AllocationRepository",
    "RateRepository",
    "InMemoryAllocationRepository",
    "InMemoryRateRepository",
    "SqlAllocationRepository",
    "SqlRateRepository",
]
