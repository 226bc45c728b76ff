"""
API Response Schemas

Pydantic models for the JSON bodies the service returns.
"""

from pydantic import BaseModel, Field


class InfoResponse(BaseModel):
    """Response model for the info endpoint."""
    db_status: str = Field(..., description="'ok' if the store answered a round trip, else 'error'")
    since_start: int = Field(..., description="All-time redirect count from the request log, -1 if unavailable")
    last_24_hours: int = Field(..., description="Redirects in the rolling window, -1 if unavailable")
    service_started_at: str = Field(..., description="Service start marker")
