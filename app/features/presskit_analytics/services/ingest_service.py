"""
Event ingest for public press kit pages.

Validates and stores single view and click events. A stored view is
announced to the notification dispatcher as a ViewRecorded fact; the
dispatcher runs the notification gate on its own task, so nothing it does
can fail or delay record_view.
"""

from app.db.helpers import DatabaseError
from app.features.presskit_analytics.clients.geolocation_client import (
    GeolocationClient,
    geolocation_client,
)
from app.features.presskit_analytics.domain.models import (
    ElementType,
    RecordedView,
    ViewRecorded,
)
from app.features.presskit_analytics.repository.click_repository import ClickEventRepository
from app.features.presskit_analytics.repository.view_repository import ViewEventRepository
from app.features.presskit_analytics.services.notification_dispatcher import (
    notification_dispatcher,
)
from app.infrastructure.observability.logging import get_logger
from app.security.hashing import hash_viewer_ip

logger = get_logger(__name__)

MAX_SECTION_LENGTH = 100


class TrackingValidationError(ValueError):
    """Raised when a tracking request is missing or has invalid fields."""


class TrackingStoreError(Exception):
    """Raised when the record store rejects a tracking write."""

    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class PressKitIngestService:
    """Records views, clicks, durations, and viewed sections."""

    def __init__(
        self,
        views=ViewEventRepository,
        clicks=ClickEventRepository,
        geolocation: GeolocationClient = geolocation_client,
        publisher=notification_dispatcher,
    ):
        self.views = views
        self.clicks = clicks
        self.geolocation = geolocation
        self.publisher = publisher

    async def record_view(
        self,
        presskit_id: str | None,
        referrer: str | None = None,
        client_ip: str | None = None,
        user_agent: str | None = None,
    ) -> RecordedView:
        """
        Store a new view of a press kit.

        Args:
            presskit_id: Press kit being viewed (existence is left to the store)
            referrer: document.referrer of the viewing page, if any
            client_ip: Raw viewer address; only its hash is stored
            user_agent: Viewer user agent

        Returns:
            RecordedView with the new id and creation timestamp

        Raises:
            TrackingValidationError: presskit_id missing
            TrackingStoreError: the insert failed
        """
        presskit_id = _clean(presskit_id)
        if not presskit_id:
            raise TrackingValidationError("Missing epk_id")

        referrer = _clean(referrer)
        location = await self._resolve_location(client_ip)

        try:
            recorded = await self.views.insert_view(
                presskit_id=presskit_id,
                viewer_ip=hash_viewer_ip(_clean(client_ip)),
                viewer_location=location,
                referrer=referrer,
                user_agent=_clean(user_agent),
            )
        except DatabaseError as e:
            logger.error("Error tracking view", presskit_id=presskit_id, error=str(e))
            raise TrackingStoreError(
                "Failed to track view", operation="record_view", recoverable=e.recoverable
            ) from e

        logger.info(
            "View recorded",
            presskit_id=presskit_id,
            view_event_id=recorded.view_event_id,
            has_location=location is not None,
            has_referrer=referrer is not None,
        )

        self._announce(
            ViewRecorded(
                presskit_id=presskit_id,
                view_event_id=recorded.view_event_id,
                viewed_at=recorded.viewed_at,
                viewer_location=location,
                referrer=referrer,
            )
        )
        return recorded

    async def record_click(
        self,
        presskit_id: str | None,
        element_type: str | None,
        element_url: str | None,
        view_event_id: str | None = None,
    ) -> None:
        """
        Store an outbound click.

        Raises:
            TrackingValidationError: required field missing or unknown element type
            TrackingStoreError: the insert failed
        """
        presskit_id = _clean(presskit_id)
        element_value = _clean(element_type)
        element_url = _clean(element_url)
        if not presskit_id or not element_value or not element_url:
            raise TrackingValidationError("Missing required fields")

        try:
            category = ElementType(element_value)
        except ValueError as e:
            raise TrackingValidationError("Invalid element_type") from e

        try:
            await self.clicks.insert_click(
                presskit_id=presskit_id,
                view_event_id=_clean(view_event_id),
                element_type=category,
                element_url=element_url,
            )
        except DatabaseError as e:
            logger.error("Error tracking click", presskit_id=presskit_id, error=str(e))
            raise TrackingStoreError(
                "Failed to track click", operation="record_click", recoverable=e.recoverable
            ) from e

        logger.info("Click recorded", presskit_id=presskit_id, element_type=category.value)

    async def record_duration(self, view_event_id: str | None, seconds: int) -> bool:
        """
        Set time-on-page for a view. Last write wins.

        Returns:
            bool: whether a view row was updated
        """
        view_event_id = _clean(view_event_id)
        if not view_event_id:
            raise TrackingValidationError("Missing view_id")
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds < 0:
            raise TrackingValidationError("time_on_page must be a non-negative integer")

        try:
            affected = await self.views.update_time_on_page(view_event_id, seconds)
        except DatabaseError as e:
            logger.error("Error updating view", view_event_id=view_event_id, error=str(e))
            raise TrackingStoreError(
                "Failed to update view", operation="record_duration", recoverable=e.recoverable
            ) from e

        if not affected:
            logger.info("Duration update matched no view", view_event_id=view_event_id)
        return affected > 0

    async def record_section_viewed(self, view_event_id: str | None, section: str | None) -> bool:
        """
        Append a section name to a view's sections_viewed.

        Returns:
            bool: True if the section was new for this view
        """
        view_event_id = _clean(view_event_id)
        section = _clean(section)
        if not view_event_id or not section:
            raise TrackingValidationError("Missing required fields")
        if len(section) > MAX_SECTION_LENGTH:
            raise TrackingValidationError("Section name too long")

        try:
            return await self.views.append_section(view_event_id, section)
        except DatabaseError as e:
            logger.error("Error recording section", view_event_id=view_event_id, error=str(e))
            raise TrackingStoreError(
                "Failed to update view", operation="record_section_viewed", recoverable=e.recoverable
            ) from e

    async def _resolve_location(self, client_ip: str | None) -> str | None:
        try:
            return await self.geolocation.lookup(client_ip)
        except Exception as e:
            logger.warning("Ignoring geolocation error", error=str(e), error_type=type(e).__name__)
            return None

    def _announce(self, fact: ViewRecorded) -> None:
        try:
            accepted = self.publisher.publish(fact)
        except Exception as e:
            logger.error(
                "Failed to hand off view for notification",
                view_event_id=fact.view_event_id,
                error=str(e),
            )
            return

        if not accepted:
            logger.warning("View not queued for notification", view_event_id=fact.view_event_id)


ingest_service = PressKitIngestService()
