"""Health and service-info schemas."""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"


class HealthResponse(BaseModel):
    """Ping response."""

    status: HealthStatus = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current server time (ISO 8601)")
    version: str = Field("1.0.0", description="API version")


class ReadinessResponse(BaseModel):
    """Readiness probe result with one entry per dependency."""

    status: str = Field(..., description="'ready' when every check passed")
    service: str
    checks: Dict[str, str] = Field(default_factory=dict)


class ServiceInfo(BaseModel):
    """Static description of the running service."""

    service: str
    version: str
    environment: str
    debug: bool
    checkout_day_free: bool = Field(..., description="Whether the checkout day stays bookable")
    docs: Optional[str] = None
