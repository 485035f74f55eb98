"""Health-related Pydantic schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class HealthResponse(BaseModel):
    """Liveness response schema."""

    status: HealthStatus = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current server time (ISO 8601)")
    version: str = Field(..., description="API version")


class ReadinessResponse(BaseModel):
    """Readiness response schema with one entry per dependency."""

    status: HealthStatus = Field(..., description="'ready' when every check passed")
    checks: dict[str, str] = Field(default_factory=dict, description="Dependency name to 'ok' or an error")
    strict_rate_resolution: bool = Field(..., description="Whether unmatched quotes fail instead of pricing at zero")
