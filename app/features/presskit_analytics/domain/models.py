"""
Domain models for press kit analytics.

Records mirror the Supabase tables (epks, epk_views, epk_clicks). The
analytics overview types are what the owner dashboard renders.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ElementType(str, Enum):
    """Trackable element categories on a public press kit."""

    MUSIC = "music"
    VIDEO = "video"
    SOCIAL = "social"
    CONTACT = "contact"


class PressKit(BaseModel):
    """The subset of an epks row the analytics core needs."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    slug: str
    artist_name: str
    is_published: bool = False
    notify_on_view: bool = False
    last_notification_at: datetime | None = None


class ViewEvent(BaseModel):
    """One page load of a press kit."""

    id: str
    presskit_id: str
    viewer_ip: str = Field(..., description="Privacy-hashed viewer address")
    viewer_location: str | None = None
    referrer: str | None = None
    user_agent: str | None = None
    viewed_at: datetime
    time_on_page: int | None = Field(None, description="Seconds on page, set after unload")
    sections_viewed: list[str] = Field(default_factory=list)


class ClickEvent(BaseModel):
    """One tracked outbound interaction. Immutable."""

    id: str
    presskit_id: str
    view_id: str | None = None
    element_type: ElementType
    element_url: str
    clicked_at: datetime


class RecordedView(BaseModel):
    """Result of recording a view."""

    view_event_id: str
    viewed_at: datetime


class ViewRecorded(BaseModel):
    """Fact published after a view is durably stored."""

    presskit_id: str
    view_event_id: str
    viewed_at: datetime
    viewer_location: str | None = None
    referrer: str | None = None


class NotificationOutcome(str, Enum):
    """What the notification gate decided for one view."""

    SENT = "sent"
    DISABLED = "disabled"
    RATE_LIMITED = "rate_limited"
    OWNER_UNRESOLVED = "owner_unresolved"
    DISPATCH_FAILED = "dispatch_failed"
    KIT_NOT_FOUND = "kit_not_found"


class ViewNotification(BaseModel):
    """Content of a 'someone viewed your press kit' email."""

    to_email: str
    artist_name: str
    presskit_url: str
    dashboard_url: str
    location: str
    source: str = Field(..., description="Referrer hostname or 'direct'")
    viewed_at: str = Field(..., description="Human readable view time")

    @property
    def subject(self) -> str:
        return f"Someone just viewed your EPK - {self.artist_name}"

    @property
    def source_text(self) -> str:
        if self.source == "direct":
            return "Direct visit"
        return f"Found you via {self.source}"


class DailyViewCount(BaseModel):
    date: date
    count: int


class ClickTypeCount(BaseModel):
    type: ElementType
    count: int


class ReferrerCount(BaseModel):
    referrer: str
    count: int


class AnalyticsOverview(BaseModel):
    """Everything the owner dashboard shows for one press kit."""

    total_views: int
    unique_views: int
    total_clicks: int
    average_time_on_page: float
    views_by_date: list[DailyViewCount]
    clicks_by_type: list[ClickTypeCount]
    top_referrers: list[ReferrerCount]
    recent_views: list[ViewEvent]
