"""
Best-effort viewer geolocation.

Resolves a client IP to "City, Country" through an ip-api.com compatible
endpoint. Every failure mode returns None; callers never see an exception.
"""

import ipaddress

import httpx

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def is_public_address(address: str | None) -> bool:
    """True for a parseable, globally routable IP address."""
    if not address:
        return False
    try:
        parsed = ipaddress.ip_address(address.strip())
    except ValueError:
        return False
    return not (
        parsed.is_loopback or parsed.is_private or parsed.is_link_local or parsed.is_unspecified
    )


class GeolocationClient:
    """Looks up approximate viewer location. No retries."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.GEOLOCATION_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GEOLOCATION_TIMEOUT
        self._transport = transport

    async def lookup(self, address: str | None) -> str | None:
        """
        Resolve an address to "City, Country".

        Args:
            address: Raw client IP

        Returns:
            Location string, or None when skipped or unresolved
        """
        if not is_public_address(address):
            return None

        url = f"{self.base_url}/{address.strip()}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params={"fields": "city,country"})
        except httpx.HTTPError as e:
            logger.warning(
                "Geolocation lookup failed", error=str(e), error_type=type(e).__name__
            )
            return None

        if not response.is_success:
            logger.warning("Geolocation lookup rejected", status_code=response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Geolocation response was not JSON")
            return None

        city = data.get("city") if isinstance(data, dict) else None
        country = data.get("country") if isinstance(data, dict) else None
        if city and country:
            return f"{city}, {country}"
        return None


geolocation_client = GeolocationClient()
