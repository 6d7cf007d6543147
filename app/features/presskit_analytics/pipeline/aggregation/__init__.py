"""
Aggregation package for press kit analytics.

Pure transformations from raw view/click history into dashboard statistics.
"""

from .service import (
    average_time_on_page,
    build_overview,
    clicks_by_type,
    recent_views,
    top_referrers,
    total_clicks,
    total_views,
    unique_views,
    views_by_date,
)

__all__ = [
    "average_time_on_page",
    "build_overview",
    "clicks_by_type",
    "recent_views",
    "top_referrers",
    "total_clicks",
    "total_views",
    "unique_views",
    "views_by_date",
]
