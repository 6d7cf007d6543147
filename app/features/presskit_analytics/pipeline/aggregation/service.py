"""
Press kit analytics aggregation.

Turns the raw view and click history of one press kit into the summary
statistics shown on the owner dashboard. Every function here is pure:
same history and same ``now`` give the same result, and inputs are never
mutated. Calendar days are UTC days; naive datetimes are read as UTC.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta

from app.features.presskit_analytics.domain.models import (
    AnalyticsOverview,
    ClickEvent,
    ClickTypeCount,
    DailyViewCount,
    ReferrerCount,
    ViewEvent,
)
from app.utils.referrers import referrer_hostname

DAILY_WINDOW_DAYS = 30
TOP_REFERRER_LIMIT = 5
RECENT_VIEW_LIMIT = 10
DIRECT_REFERRER = "Direct"


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def _utc_day(moment: datetime) -> date:
    return _as_utc(moment).date()


def total_views(views: Sequence[ViewEvent]) -> int:
    return len(views)


def unique_views(views: Sequence[ViewEvent]) -> int:
    """Distinct hashed viewer addresses. Approximate: hashes can collide."""
    return len({view.viewer_ip for view in views})


def total_clicks(clicks: Sequence[ClickEvent]) -> int:
    return len(clicks)


def average_time_on_page(views: Sequence[ViewEvent]) -> float:
    """Mean of recorded durations in seconds; 0.0 when nothing was recorded."""
    durations = [view.time_on_page for view in views if view.time_on_page is not None]
    if not durations:
        return 0.0
    return sum(durations) / len(durations)


def views_by_date(
    views: Sequence[ViewEvent], now: datetime, days: int = DAILY_WINDOW_DAYS
) -> list[DailyViewCount]:
    """
    Daily view counts for the ``days`` calendar days ending at ``now``.

    Always returns exactly ``days`` rows, oldest first, with empty days
    reported as 0. Views outside the window are ignored.
    """
    today = _utc_day(now)
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    counts = Counter(_utc_day(view.viewed_at) for view in views)
    return [DailyViewCount(date=day, count=counts.get(day, 0)) for day in window]


def clicks_by_type(clicks: Sequence[ClickEvent]) -> list[ClickTypeCount]:
    """Click counts per element type in first-seen order. Zero counts never appear."""
    counts = Counter(click.element_type for click in clicks)
    return [ClickTypeCount(type=element_type, count=count) for element_type, count in counts.items()]


def top_referrers(
    views: Sequence[ViewEvent], limit: int = TOP_REFERRER_LIMIT
) -> list[ReferrerCount]:
    """
    Most common referrer hostnames, highest count first.

    Absent or unparseable referrers group under "Direct". Ties keep the
    order in which each hostname was first seen in ``views``.
    """
    counts = Counter(referrer_hostname(view.referrer) or DIRECT_REFERRER for view in views)
    # sorted() is stable, so equal counts stay in first-seen order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [ReferrerCount(referrer=host, count=count) for host, count in ranked[:limit]]


def recent_views(views: Sequence[ViewEvent], limit: int = RECENT_VIEW_LIMIT) -> list[ViewEvent]:
    """The ``limit`` most recently created views, newest first."""
    ranked = sorted(views, key=lambda view: _as_utc(view.viewed_at), reverse=True)
    return [view.model_copy(deep=True) for view in ranked[:limit]]


def build_overview(
    views: Sequence[ViewEvent], clicks: Sequence[ClickEvent], now: datetime
) -> AnalyticsOverview:
    """Compute the full dashboard overview for one press kit."""
    return AnalyticsOverview(
        total_views=total_views(views),
        unique_views=unique_views(views),
        total_clicks=total_clicks(clicks),
        average_time_on_page=average_time_on_page(views),
        views_by_date=views_by_date(views, now),
        clicks_by_type=clicks_by_type(clicks),
        top_referrers=top_referrers(views),
        recent_views=recent_views(views),
    )
