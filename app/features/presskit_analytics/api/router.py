"""
Press kit analytics routes.

Public, unauthenticated tracking endpoints called by the press kit page,
plus the owner-only analytics overview used by the dashboard.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError

from app.auth.verify import auth_dependency
from app.features.presskit_analytics.domain.models import AnalyticsOverview
from app.features.presskit_analytics.services.analytics_service import (
    AnalyticsServiceError,
    PressKitAnalyticsService,
    analytics_service,
)
from app.features.presskit_analytics.services.ingest_service import (
    PressKitIngestService,
    TrackingStoreError,
    TrackingValidationError,
    ingest_service,
)
from app.infrastructure.observability.logging import get_logger
from app.models.api.tracking_request import (
    TrackClickRequest,
    TrackDurationRequest,
    TrackSectionRequest,
    TrackViewRequest,
)
from app.models.api.tracking_response import (
    TrackSectionResponse,
    TrackSuccessResponse,
    TrackViewResponse,
)

logger = get_logger(__name__)

router = APIRouter(tags=["presskit-analytics"])


def get_ingest_service() -> PressKitIngestService:
    return ingest_service


def get_analytics_service() -> PressKitAnalyticsService:
    return analytics_service


def _client_ip(request: Request) -> str | None:
    """Client address resolved by RequestContextMiddleware, if it ran."""
    ip_address = getattr(request.state, "ip_address", None)
    if ip_address:
        return ip_address
    return request.client.host if request.client else None


def _bad_request(error: TrackingValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _store_failure(error: TrackingStoreError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


@router.post("/api/track/view", response_model=TrackViewResponse)
async def track_view(
    body: TrackViewRequest,
    request: Request,
    service: PressKitIngestService = Depends(get_ingest_service),
):
    """Record one public page load."""
    try:
        recorded = await service.record_view(
            presskit_id=body.epk_id,
            referrer=body.referrer,
            client_ip=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    except TrackingValidationError as e:
        raise _bad_request(e) from e
    except TrackingStoreError as e:
        raise _store_failure(e) from e

    return TrackViewResponse(view_id=recorded.view_event_id, viewed_at=recorded.viewed_at)


async def _record_duration(body: TrackDurationRequest, service: PressKitIngestService):
    try:
        await service.record_duration(body.view_id, body.time_on_page)
    except TrackingValidationError as e:
        raise _bad_request(e) from e
    except TrackingStoreError as e:
        raise _store_failure(e) from e

    return TrackSuccessResponse()


@router.put("/api/track/view", response_model=TrackSuccessResponse)
async def track_view_duration(
    body: TrackDurationRequest,
    service: PressKitIngestService = Depends(get_ingest_service),
):
    """Record time on page when the viewer leaves."""
    return await _record_duration(body, service)


@router.post("/api/track/view/duration", response_model=TrackSuccessResponse)
async def track_view_duration_beacon(
    request: Request,
    service: PressKitIngestService = Depends(get_ingest_service),
):
    """
    Same as PUT /api/track/view, for navigator.sendBeacon.

    Beacons are POSTs with a text/plain body, so the JSON is parsed here
    instead of relying on the content type.
    """
    try:
        body = TrackDurationRequest.model_validate_json(await request.body())
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid duration payload"
        ) from e

    return await _record_duration(body, service)


@router.post("/api/track/section", response_model=TrackSectionResponse)
async def track_section(
    body: TrackSectionRequest,
    service: PressKitIngestService = Depends(get_ingest_service),
):
    """Record that a section of the press kit was scrolled into view."""
    try:
        added = await service.record_section_viewed(body.view_id, body.section)
    except TrackingValidationError as e:
        raise _bad_request(e) from e
    except TrackingStoreError as e:
        raise _store_failure(e) from e

    return TrackSectionResponse(added=added)


@router.post("/api/track/click", response_model=TrackSuccessResponse)
async def track_click(
    body: TrackClickRequest,
    service: PressKitIngestService = Depends(get_ingest_service),
):
    """Record a click on a music, video, social, or contact link."""
    try:
        await service.record_click(
            presskit_id=body.epk_id,
            element_type=body.element_type,
            element_url=body.element_url,
            view_event_id=body.view_id,
        )
    except TrackingValidationError as e:
        raise _bad_request(e) from e
    except TrackingStoreError as e:
        raise _store_failure(e) from e

    return TrackSuccessResponse()


@router.get("/api/presskits/{presskit_id}/analytics", response_model=AnalyticsOverview)
async def get_presskit_analytics(
    presskit_id: str,
    now: datetime | None = Query(None, description="Reference time, defaults to the current time"),
    claims: dict = Depends(auth_dependency),
    service: PressKitAnalyticsService = Depends(get_analytics_service),
):
    """Analytics overview for a press kit owned by the caller."""
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User ID not found in claims",
        )

    try:
        presskit = await service.get_owned_presskit(presskit_id, user_id)
        if presskit is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Press kit not found")

        return await service.get_overview(presskit.id, now)
    except AnalyticsServiceError as e:
        logger.error("Analytics unavailable", presskit_id=presskit_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analytics temporarily unavailable",
        ) from e
