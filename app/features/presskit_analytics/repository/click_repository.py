"""
Repository for epk_clicks.
"""

from app.db.helpers import execute_query, fetch_all, with_db_retry
from app.features.presskit_analytics.domain.models import ClickEvent, ElementType


class ClickEventRepository:
    """Raw SQL helpers for click events."""

    @classmethod
    async def insert_click(
        cls,
        presskit_id: str,
        view_event_id: str | None,
        element_type: ElementType,
        element_url: str,
    ) -> None:
        query = """
            INSERT INTO epk_clicks (epk_id, view_id, element_type, element_url)
            VALUES (%s, %s, %s, %s)
        """

        await execute_query(query, (presskit_id, view_event_id, element_type.value, element_url))

    @classmethod
    @with_db_retry(max_retries=2, base_delay=0.1)
    async def fetch_clicks(cls, presskit_id: str) -> list[ClickEvent]:
        query = """
            SELECT id, epk_id, view_id, element_type, element_url, clicked_at
            FROM epk_clicks
            WHERE epk_id = %s
            ORDER BY clicked_at DESC
        """

        rows = await fetch_all(query, (presskit_id,))
        return [
            ClickEvent(
                id=str(row["id"]),
                presskit_id=str(row["epk_id"]),
                view_id=str(row["view_id"]) if row.get("view_id") else None,
                element_type=ElementType(row["element_type"]),
                element_url=row["element_url"],
                clicked_at=row["clicked_at"],
            )
            for row in rows
        ]
