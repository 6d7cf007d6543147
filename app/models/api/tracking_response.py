# app/models/api/tracking_response.py
from datetime import datetime

from pydantic import BaseModel


class TrackViewResponse(BaseModel):
    """Response for POST /api/track/view"""

    view_id: str
    viewed_at: datetime


class TrackSuccessResponse(BaseModel):
    """Response for duration and click tracking."""

    success: bool = True


class TrackSectionResponse(BaseModel):
    """Response for POST /api/track/section"""

    success: bool = True
    added: bool
