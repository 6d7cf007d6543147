"""
RequestContext Middleware - Adds request tracking to all requests.

Every request gets, on request.state:
- request_id: Unique ID for request tracing
- ip_address: Client IP address (proxy-aware)
- user_agent: Client user agent string

The tracking routes read ip_address to geolocate and hash the viewer.
The raw address is never logged.
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Add request context to all incoming requests.

    Also adds an X-Request-ID header to responses for client-side tracing.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.ip_address = self._extract_client_ip(request)
        request.state.user_agent = request.headers.get("user-agent")

        logger.debug(
            "Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    def _extract_client_ip(self, request: Request) -> str | None:
        """
        Client address, honouring X-Forwarded-For only from trusted proxies.

        Press kits are usually served behind a load balancer, so the direct
        peer is the proxy. The header is trusted only when
        TRUST_X_FORWARDED_FOR is on and the peer is in TRUSTED_PROXY_IPS;
        otherwise any viewer could pick the address that gets geolocated.
        """
        direct_ip = request.client.host if request.client else None

        if not settings.TRUST_X_FORWARDED_FOR:
            return direct_ip

        if direct_ip and direct_ip in settings.TRUSTED_PROXY_IPS:
            forwarded_for = request.headers.get("x-forwarded-for")
            if forwarded_for:
                # "client, proxy1, proxy2"
                client_ip = forwarded_for.split(",")[0].strip()
                if client_ip:
                    logger.debug("Using X-Forwarded-For from trusted proxy", proxy_ip=direct_ip)
                    return client_ip

        return direct_ip
