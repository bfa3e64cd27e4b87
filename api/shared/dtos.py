"""Shared DTOs for the persona chat API."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseDTO(BaseModel):
    """Base DTO with common configuration."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class HealthCheckResponse(BaseDTO):
    """Health check response DTO."""
    status: str = Field(description="Service status")
    timestamp: datetime = Field(default_factory=_utcnow)
    version: str = Field(default="0.1.0")
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ErrorResponse(BaseDTO):
    """Error response DTO."""
    error: str = Field(description="Error title")
    error_code: str = Field(description="Error code")
    detail: str = Field(description="Error message")
    status_code: int = Field(description="HTTP status code")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error details")
