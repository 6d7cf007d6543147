"""
Resend email client for view notifications.

Only composes the message and hands it to the Resend HTTP API; delivery is
Resend's concern. Without RESEND_API_KEY nothing is sent.
"""

from html import escape

import httpx

from app.config import settings
from app.features.presskit_analytics.domain.models import ViewNotification
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class EmailDispatchError(Exception):
    """Raised when the email provider rejects or cannot receive a message."""

    def __init__(self, message: str, status_code: int | None = None, recoverable: bool = True):
        super().__init__(message)
        self.status_code = status_code
        self.recoverable = recoverable


def render_view_notification_html(notification: ViewNotification) -> str:
    """HTML body for a view notification."""
    artist = escape(notification.artist_name)
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; background-color: #f3f4f6; padding: 40px 20px;">
  <div style="max-width: 480px; margin: 0 auto; background: white; border-radius: 12px; padding: 32px;">
    <h1 style="font-size: 24px;">Someone viewed your EPK!</h1>
    <p>Great news! A potential booker just checked out <strong>{artist}</strong>.</p>
    <p><strong>When</strong><br>{escape(notification.viewed_at)}</p>
    <p><strong>Location</strong><br>{escape(notification.location)}</p>
    <p><strong>Source</strong><br>{escape(notification.source_text)}</p>
    <p><a href="{escape(notification.dashboard_url)}">View Full Analytics</a></p>
    <p style="font-size: 12px; color: #9ca3af;">
      <a href="{escape(notification.presskit_url)}">View your EPK</a> &middot;
      <a href="{escape(notification.dashboard_url)}">Dashboard</a>
    </p>
  </div>
  <p style="text-align: center; color: #9ca3af; font-size: 12px;">
    You're receiving this because you have view notifications enabled.
  </p>
</body>
</html>"""


class ResendEmailClient:
    """Sends notification emails through the Resend API."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        from_address: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.api_url = api_url or settings.RESEND_API_URL
        self.from_address = from_address or settings.NOTIFICATION_FROM_ADDRESS
        self._transport = transport

    async def send_view_notification(self, notification: ViewNotification) -> bool:
        """
        Dispatch a view notification.

        Returns:
            bool: True only when the provider accepted the message
        """
        if not self.api_key:
            logger.info("RESEND_API_KEY not set, skipping email", artist=notification.artist_name)
            return False

        try:
            message_id = await self._post(notification)
        except EmailDispatchError as e:
            logger.error(
                "View notification dispatch failed",
                artist=notification.artist_name,
                status_code=e.status_code,
                error=str(e),
            )
            return False

        logger.info(
            "View notification sent", artist=notification.artist_name, message_id=message_id
        )
        return True

    async def _post(self, notification: ViewNotification) -> str | None:
        payload = {
            "from": self.from_address,
            "to": notification.to_email,
            "subject": notification.subject,
            "html": render_view_notification_html(notification),
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=settings.EMAIL_TIMEOUT, transport=self._transport
            ) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise EmailDispatchError(f"Email provider unreachable: {e}") from e

        if not response.is_success:
            raise EmailDispatchError(
                f"Email provider rejected message (HTTP {response.status_code})",
                status_code=response.status_code,
                recoverable=response.status_code >= 500,
            )

        try:
            data = response.json()
        except ValueError:
            return None
        return data.get("id") if isinstance(data, dict) else None


email_client = ResendEmailClient()
