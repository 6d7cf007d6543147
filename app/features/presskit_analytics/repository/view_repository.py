"""
Repository for epk_views.

Views are append-only history: one insert per page load, followed by at
most a duration patch and section-viewed appends.
"""

from app.db.helpers import DatabaseError, execute_query, fetch_all, fetch_one, with_db_retry
from app.features.presskit_analytics.domain.models import RecordedView, ViewEvent
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def _row_to_view(row: dict) -> ViewEvent:
    return ViewEvent(
        id=str(row["id"]),
        presskit_id=str(row["epk_id"]),
        viewer_ip=row["viewer_ip"],
        viewer_location=row.get("viewer_location"),
        referrer=row.get("referrer"),
        user_agent=row.get("user_agent"),
        viewed_at=row["viewed_at"],
        time_on_page=row.get("time_on_page"),
        sections_viewed=list(row.get("sections_viewed") or []),
    )


class ViewEventRepository:
    """Raw SQL helpers for view events."""

    @classmethod
    async def insert_view(
        cls,
        presskit_id: str,
        viewer_ip: str,
        viewer_location: str | None,
        referrer: str | None,
        user_agent: str | None,
    ) -> RecordedView:
        query = """
            INSERT INTO epk_views (
                epk_id, viewer_ip, viewer_location, referrer, user_agent, sections_viewed
            ) VALUES (
                %s, %s, %s, %s, %s, '{}'::text[]
            )
            RETURNING id, viewed_at
        """

        row = await fetch_one(
            query, (presskit_id, viewer_ip, viewer_location, referrer, user_agent)
        )
        if not row:
            raise DatabaseError("Insert returned no row", operation="insert_view", recoverable=False)

        return RecordedView(view_event_id=str(row["id"]), viewed_at=row["viewed_at"])

    @classmethod
    async def update_time_on_page(cls, view_event_id: str, seconds: int) -> int:
        query = """
            UPDATE epk_views
            SET time_on_page = %s
            WHERE id = %s
        """

        return await execute_query(query, (seconds, view_event_id))

    @classmethod
    async def append_section(cls, view_event_id: str, section: str) -> bool:
        # Conditional append keeps sections_viewed deduplicated without a read
        query = """
            UPDATE epk_views
            SET sections_viewed = array_append(COALESCE(sections_viewed, '{}'::text[]), %s)
            WHERE id = %s
              AND NOT (%s = ANY(COALESCE(sections_viewed, '{}'::text[])))
        """

        affected = await execute_query(query, (section, view_event_id, section))
        return affected > 0

    @classmethod
    @with_db_retry(max_retries=2, base_delay=0.1)
    async def fetch_views(cls, presskit_id: str) -> list[ViewEvent]:
        query = """
            SELECT
                id,
                epk_id,
                viewer_ip,
                viewer_location,
                referrer,
                user_agent,
                viewed_at,
                time_on_page,
                sections_viewed
            FROM epk_views
            WHERE epk_id = %s
            ORDER BY viewed_at DESC
        """

        rows = await fetch_all(query, (presskit_id,))
        return [_row_to_view(row) for row in rows]
