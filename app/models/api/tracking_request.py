# app/models/api/tracking_request.py
"""
Request bodies for the public tracking endpoints.

Field names match the JSON the press kit page already sends. Required
fields are validated by the ingest service so that missing values come
back as 400s with the same messages for every client.
"""

from pydantic import BaseModel, Field


class TrackViewRequest(BaseModel):
    """Body for POST /api/track/view."""

    epk_id: str | None = None
    referrer: str | None = Field(None, description="document.referrer of the viewing page")


class TrackDurationRequest(BaseModel):
    """Body for PUT /api/track/view and the beacon variant."""

    view_id: str | None = None
    epk_id: str | None = None
    time_on_page: int | None = Field(None, description="Seconds spent on the page")


class TrackClickRequest(BaseModel):
    """Body for POST /api/track/click."""

    epk_id: str | None = None
    view_id: str | None = None
    element_type: str | None = Field(None, description="music, video, social or contact")
    element_url: str | None = None


class TrackSectionRequest(BaseModel):
    """Body for POST /api/track/section."""

    view_id: str | None = None
    section: str | None = None
