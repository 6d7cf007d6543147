"""
View notification gate.

Decides whether a freshly recorded view should email the press kit owner:
the kit must be published with notifications enabled, the last email must
be at least an hour old, and the owner's address must resolve. The
timestamp only moves when the email provider accepted the message, so a
failed send is retried by the next view.

Concurrent views can both pass the cooldown check; at most one email per
window is a soft limit.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from app.config import settings
from app.db.helpers import DatabaseError
from app.features.presskit_analytics.clients.email_client import (
    ResendEmailClient,
    email_client,
)
from app.features.presskit_analytics.domain.models import (
    NotificationOutcome,
    PressKit,
    ViewNotification,
    ViewRecorded,
)
from app.features.presskit_analytics.repository.account_repository import (
    AccountDirectoryRepository,
)
from app.features.presskit_analytics.repository.presskit_repository import PressKitRepository
from app.infrastructure.observability.logging import get_logger
from app.utils.referrers import referrer_hostname

logger = get_logger(__name__)

NOTIFICATION_COOLDOWN = timedelta(hours=1)
UNKNOWN_LOCATION = "Unknown location"
DIRECT_SOURCE = "direct"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def format_view_time(moment: datetime) -> str:
    """e.g. 'Mon, Oct 19, 3:04 PM UTC'."""
    moment = _as_utc(moment)
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{moment:%a, %b} {moment.day}, {hour}:{moment:%M} {meridiem} UTC"


def in_cooldown(last_notification_at: datetime | None, now: datetime) -> bool:
    if last_notification_at is None:
        return False
    return _as_utc(now) - _as_utc(last_notification_at) < NOTIFICATION_COOLDOWN


class NotificationGate:
    """Rate-limited 'someone viewed your EPK' emails."""

    def __init__(
        self,
        presskits=PressKitRepository,
        accounts=AccountDirectoryRepository,
        mailer: ResendEmailClient = email_client,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.presskits = presskits
        self.accounts = accounts
        self.mailer = mailer
        self.clock = clock

    def compose(self, presskit: PressKit, view: ViewRecorded, to_email: str) -> ViewNotification:
        return ViewNotification(
            to_email=to_email,
            artist_name=presskit.artist_name,
            presskit_url=settings.presskit_url(presskit.slug),
            dashboard_url=settings.dashboard_url(),
            location=view.viewer_location or UNKNOWN_LOCATION,
            source=referrer_hostname(view.referrer) or DIRECT_SOURCE,
            viewed_at=format_view_time(view.viewed_at),
        )

    async def evaluate(
        self, presskit: PressKit, view: ViewRecorded, now: datetime | None = None
    ) -> NotificationOutcome:
        """
        Run the gate for one view.

        Args:
            presskit: Current press kit row, including notification settings
            view: The view that was just recorded
            now: Decision time (defaults to the gate clock)

        Returns:
            NotificationOutcome describing what happened
        """
        now = now or self.clock()

        # Unpublished kits are only ever seen by their owner
        if not presskit.notify_on_view or not presskit.is_published:
            return NotificationOutcome.DISABLED

        if in_cooldown(presskit.last_notification_at, now):
            logger.info(
                "View notification rate limited",
                presskit_id=presskit.id,
                last_notification_at=presskit.last_notification_at.isoformat(),
            )
            return NotificationOutcome.RATE_LIMITED

        to_email = await self._resolve_owner_email(presskit)
        if not to_email:
            return NotificationOutcome.OWNER_UNRESOLVED

        notification = self.compose(presskit, view, to_email)

        try:
            sent = await self.mailer.send_view_notification(notification)
        except Exception as e:
            logger.error(
                "Mailer raised during view notification",
                presskit_id=presskit.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            sent = False

        if not sent:
            return NotificationOutcome.DISPATCH_FAILED

        try:
            await self.presskits.update_last_notification_at(presskit.id, now)
        except DatabaseError as e:
            # Email already went out; the next view may send again
            logger.error(
                "Failed to record notification time", presskit_id=presskit.id, error=str(e)
            )

        logger.info("View notification dispatched", presskit_id=presskit.id, view_event_id=view.view_event_id)
        return NotificationOutcome.SENT

    async def _resolve_owner_email(self, presskit: PressKit) -> str | None:
        try:
            email = await self.accounts.fetch_contact_email(presskit.user_id)
        except DatabaseError as e:
            logger.error(
                "Owner lookup failed for view notification",
                presskit_id=presskit.id,
                user_id=presskit.user_id,
                error=str(e),
            )
            return None

        if not email:
            logger.error(
                "Owner has no contact address for view notification",
                presskit_id=presskit.id,
                user_id=presskit.user_id,
            )
        return email
