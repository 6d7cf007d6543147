"""
Domain subpackage for press kit analytics.
"""

from .models import (
    AnalyticsOverview,
    ClickEvent,
    ClickTypeCount,
    DailyViewCount,
    ElementType,
    NotificationOutcome,
    PressKit,
    RecordedView,
    ReferrerCount,
    ViewEvent,
    ViewNotification,
    ViewRecorded,
)

__all__ = [
    "AnalyticsOverview",
    "ClickEvent",
    "ClickTypeCount",
    "DailyViewCount",
    "ElementType",
    "NotificationOutcome",
    "PressKit",
    "RecordedView",
    "ReferrerCount",
    "ViewEvent",
    "ViewNotification",
    "ViewRecorded",
]
