"""
Press kit analytics feature package.

Keeps every layer of view/click tracking, view notifications, and the
owner dashboard statistics co-located: domain models, repositories, the
aggregation pipeline, services, outbound clients, and the API router.
"""

# Re-export the primary building blocks for easy access.
from .api.router import router as analytics_router  # noqa: F401
from .domain.models import AnalyticsOverview, ClickEvent, ElementType, PressKit, ViewEvent  # noqa: F401
from .services.notification_dispatcher import notification_dispatcher  # noqa: F401
