"""
API Request/Response Models for the map monitor.

These Pydantic models define the contracts between the backend API and the
dashboard. AggregateResult itself carries no time-of-invocation metadata;
`last_update` only exists on the response wrapper.

Hierarchy:
- MapsResponse: filtered map list plus counts for the dashboard
- ReconcileRequest: ad-hoc pass over CSV texts posted by a client
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.maps import DEFAULT_FUTURE_LABEL, FilterCategory, MapRecord


class ResponseBase(BaseModel):
    """Base class for all API responses."""
    model_config = ConfigDict(populate_by_name=True)


class MapsResponse(ResponseBase):
    """
    Dashboard response for one reconciliation pass.

    It includes:
    - The maps matching the requested category and search term
    - Counts per category (always over the whole pass)
    - The future label
    - When the pass ran
    """
    maps: List[MapRecord] = Field(default_factory=list)
    counts: Dict[str, int] = Field(default_factory=dict)
    future_label: str = DEFAULT_FUTURE_LABEL
    total: int = Field(0, description="Number of maps in this response")
    category: Optional[FilterCategory] = Field(None, description="Category filter applied")
    search: str = Field("", description="Search term applied")
    reference_date: date = Field(..., description="Date used as 'today'")
    last_update: datetime = Field(..., description="When the pass ran")


class ReconcileRequest(BaseModel):
    """Request to reconcile CSV texts supplied in the body."""
    sources: Dict[str, str] = Field(
        ...,
        description="Logical source name (status, timingLog, ...) to decoded CSV text",
    )
    today: Optional[date] = Field(None, description="Reference date; defaults to the server date")
