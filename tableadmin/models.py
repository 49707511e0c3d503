"""
Request and response bodies of the table admin API.
"""

from typing import Any, Dict, List
from pydantic import BaseModel, Field


class UpdateRequest(BaseModel):
    """Body of a single update: which rows, and what to change."""
    condition: Dict[str, Any] = Field(default_factory=dict)
    update: Dict[str, Any] = Field(default_factory=dict)


class BulkUpdateRequest(BaseModel):
    items: List[UpdateRequest] = Field(default_factory=list)


class BulkDeleteRequest(BaseModel):
    conditions: List[Dict[str, Any]] = Field(default_factory=list)


class ApiResponse(BaseModel):
    """Envelope shared by every table admin response."""
    success: bool
    message: str


class RowsResponse(ApiResponse):
    rows: int


class BulkResponse(ApiResponse):
    results: List[Dict[str, Any]]
    succeeded: int
    failed: int


class HealthStatus(BaseModel):
    """Health status response model."""
    status: str  # "healthy" or "unhealthy"
    timestamp: float
    checks: Dict[str, Any]
