"""
Owner-facing analytics.

Loads a press kit's full view and click history and hands it to the
aggregation pipeline. Read-only.
"""

from datetime import UTC, datetime

from app.db.helpers import DatabaseError
from app.features.presskit_analytics.domain.models import AnalyticsOverview, PressKit
from app.features.presskit_analytics.pipeline.aggregation.service import build_overview
from app.features.presskit_analytics.repository.click_repository import ClickEventRepository
from app.features.presskit_analytics.repository.presskit_repository import PressKitRepository
from app.features.presskit_analytics.repository.view_repository import ViewEventRepository
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class AnalyticsServiceError(Exception):
    """Raised when analytics history cannot be loaded."""

    def __init__(self, message: str, presskit_id: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.presskit_id = presskit_id
        self.recoverable = recoverable


class PressKitAnalyticsService:
    def __init__(
        self,
        presskits=PressKitRepository,
        views=ViewEventRepository,
        clicks=ClickEventRepository,
    ):
        self.presskits = presskits
        self.views = views
        self.clicks = clicks

    async def get_owned_presskit(self, presskit_id: str, user_id: str) -> PressKit | None:
        """The press kit, if it exists and belongs to user_id."""
        try:
            presskit = await self.presskits.get_presskit(presskit_id)
        except DatabaseError as e:
            raise AnalyticsServiceError(
                f"Failed to load press kit: {e}", presskit_id=presskit_id
            ) from e

        if presskit is None or presskit.user_id != user_id:
            return None
        return presskit

    async def get_overview(self, presskit_id: str, now: datetime | None = None) -> AnalyticsOverview:
        now = now or datetime.now(UTC)

        try:
            views = await self.views.fetch_views(presskit_id)
            clicks = await self.clicks.fetch_clicks(presskit_id)
        except DatabaseError as e:
            logger.error("Failed to load analytics history", presskit_id=presskit_id, error=str(e))
            raise AnalyticsServiceError(
                f"Failed to load analytics: {e}", presskit_id=presskit_id
            ) from e

        overview = build_overview(views, clicks, now)
        logger.info(
            "Analytics overview built",
            presskit_id=presskit_id,
            total_views=overview.total_views,
            total_clicks=overview.total_clicks,
        )
        return overview


analytics_service = PressKitAnalyticsService()
