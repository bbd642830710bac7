"""
Pantry API — Shared Response Schemas
=====================================

What:  Error, health and pagination models used by every router.
Why:   Clients parse one error shape and one pagination shape everywhere.
"""

import math
from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.
    Why:   Clients need a consistent structure to parse errors programmatically.

    Example:
        {
            "error": "conflict",
            "message": "Food with this barcode already exists",
            "details": {},
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    openfoodfacts: str = Field(description="OpenFoodFacts status: available, unavailable, circuit_open")
    cache: str = Field(description="Response cache status: connected, disconnected")
    cache_backend: str = Field(description="Response cache backend: memory, redis")
    uptime_seconds: float = Field(description="Seconds since service started")


class PaginationQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
