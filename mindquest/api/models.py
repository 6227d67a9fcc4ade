"""Pydantic models for API responses"""
from datetime import datetime

from pydantic import BaseModel, Field

from mindquest.models.generation import ProxyErrorResponse

__all__ = ["HealthCheckResponse", "ProxyErrorResponse"]


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(default_factory=datetime.now, description="Check timestamp")
