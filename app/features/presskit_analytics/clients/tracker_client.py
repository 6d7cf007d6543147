"""
Viewer-side tracking client.

Talks to the public tracking endpoints on behalf of one page view. The
in-progress view is an explicit ViewSession returned by track_view and
passed back into the follow-up calls, so several views can be tracked
side by side. Tracking never raises: failures are logged and reported as
a falsy return value.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx

from app.features.presskit_analytics.domain.models import ElementType
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

REQUEST_TIMEOUT = 5.0


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class ViewSession:
    """Token for one tracked page view."""

    view_id: str
    presskit_id: str
    started_at: datetime
    sections_sent: set[str] = field(default_factory=set)

    def elapsed_seconds(self, now: datetime) -> int:
        return max(0, round((now - self.started_at).total_seconds()))


class PressKitTracker:
    """HTTP client for /api/track/* endpoints."""

    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._clock = clock

    async def _send(self, method: str, path: str, payload: dict) -> httpx.Response | None:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=REQUEST_TIMEOUT, transport=self._transport
            ) as client:
                response = await client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            logger.warning("Tracking request failed", path=path, error=str(e))
            return None

        if not response.is_success:
            logger.warning("Tracking request rejected", path=path, status_code=response.status_code)
            return None
        return response

    async def track_view(self, presskit_id: str, referrer: str | None = None) -> ViewSession | None:
        """Record a page view and open a session for it."""
        response = await self._send(
            "POST", "/api/track/view", {"epk_id": presskit_id, "referrer": referrer or None}
        )
        if response is None:
            return None

        try:
            view_id = response.json()["view_id"]
        except (ValueError, KeyError, TypeError):
            logger.warning("Tracking response missing view_id", presskit_id=presskit_id)
            return None

        return ViewSession(view_id=view_id, presskit_id=presskit_id, started_at=self._clock())

    async def track_click(
        self,
        presskit_id: str,
        element_type: ElementType | str,
        element_url: str,
        session: ViewSession | None = None,
    ) -> bool:
        """Record an outbound click, attributed to the session when there is one."""
        element_value = element_type.value if isinstance(element_type, ElementType) else element_type
        response = await self._send(
            "POST",
            "/api/track/click",
            {
                "epk_id": presskit_id,
                "view_id": session.view_id if session else None,
                "element_type": element_value,
                "element_url": element_url,
            },
        )
        return response is not None

    async def track_time_on_page(self, session: ViewSession | None) -> bool:
        """Report time since the view started. Safe to call repeatedly; the last report wins."""
        if session is None:
            return False

        seconds = session.elapsed_seconds(self._clock())
        response = await self._send(
            "PUT",
            "/api/track/view",
            {"view_id": session.view_id, "epk_id": session.presskit_id, "time_on_page": seconds},
        )
        return response is not None

    async def track_section_viewed(self, session: ViewSession | None, section: str) -> bool:
        """Mark a section as seen; repeated sections are not re-sent."""
        if session is None or not section:
            return False
        if section in session.sections_sent:
            return True

        response = await self._send(
            "POST", "/api/track/section", {"view_id": session.view_id, "section": section}
        )
        if response is None:
            return False

        session.sections_sent.add(section)
        return True
