"""
Potluck Backend: Shared API Schemas
====================================

Error envelope, pagination block and health payload shared by every router.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error envelope returned by every exception handler.

    Example:
        {
            "error": "forbidden",
            "message": "You are not allowed to modify this post",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable explanation")
    details: Optional[Dict[str, Any]] = Field(default=None)
    request_id: Optional[str] = Field(default=None)


class PaginationMeta(BaseModel):
    total: int = Field(..., ge=0, description="Total number of rows")
    limit: int = Field(..., ge=1)
    offset: int = Field(..., ge=0)


class HealthResponse(BaseModel):
    status: str = Field(..., description="healthy, degraded, or unhealthy")
    version: str
    database: str = Field(..., description="connected or disconnected")
    storage: str = Field(..., description="available or unavailable")
    uptime_seconds: float
