"""
Press kit reads and the notification timestamp write.

Press kit content is owned by the editor; this module only touches the
fields the analytics core needs.
"""

from datetime import datetime

from app.db.helpers import execute_query, fetch_one, with_db_retry
from app.features.presskit_analytics.domain.models import PressKit
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class PressKitRepository:
    """Raw SQL helpers for the epks table."""

    @classmethod
    @with_db_retry(max_retries=2, base_delay=0.1)
    async def get_presskit(cls, presskit_id: str) -> PressKit | None:
        query = """
            SELECT
                id,
                user_id,
                slug,
                artist_name,
                is_published,
                notify_on_view,
                last_notification_at
            FROM epks
            WHERE id = %s
        """

        row = await fetch_one(query, (presskit_id,))
        if not row:
            return None

        return PressKit(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            slug=row["slug"],
            artist_name=row["artist_name"],
            is_published=bool(row["is_published"]),
            notify_on_view=bool(row["notify_on_view"]),
            last_notification_at=row.get("last_notification_at"),
        )

    @classmethod
    async def update_last_notification_at(cls, presskit_id: str, notified_at: datetime) -> bool:
        query = """
            UPDATE epks
            SET last_notification_at = %s
            WHERE id = %s
        """

        affected = await execute_query(query, (notified_at, presskit_id))
        if affected == 0:
            logger.warning("Press kit vanished before notification timestamp update", presskit_id=presskit_id)
        return affected > 0
