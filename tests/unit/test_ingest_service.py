from datetime import UTC, datetime

import httpx
import pytest

from app.features.presskit_analytics.services.analytics_service import PressKitAnalyticsService
from app.features.presskit_analytics.services.ingest_service import (
    PressKitIngestService,
    TrackingStoreError,
    TrackingValidationError,
)
from app.security.hashing import hash_ip
from tests.fakes import FakeGeolocation, FakePublisher

NOW = datetime(2026, 10, 19, 15, 4, tzinfo=UTC)


@pytest.fixture
def fold_hashing(monkeypatch):
    monkeypatch.setattr("app.security.hashing.settings.IP_HASH_MODE", "fold")


@pytest.fixture
def service(view_store, click_store, geolocation, publisher, fold_hashing):
    return PressKitIngestService(
        views=view_store, clicks=click_store, geolocation=geolocation, publisher=publisher
    )


@pytest.mark.asyncio
async def test_record_view_stores_hashed_address(service, view_store, geolocation):
    recorded = await service.record_view(
        "kit-1", referrer="https://bandsintown.com/x", client_ip="203.0.113.7", user_agent="UA"
    )

    stored = view_store.rows[0]
    assert stored.id == recorded.view_event_id
    assert stored.viewer_ip == hash_ip("203.0.113.7")
    assert stored.viewer_ip != "203.0.113.7"
    assert stored.viewer_location == "Berlin, Germany"
    assert stored.referrer == "https://bandsintown.com/x"
    assert stored.user_agent == "UA"
    assert stored.time_on_page is None
    assert stored.sections_viewed == []
    assert geolocation.lookups == ["203.0.113.7"]


@pytest.mark.asyncio
async def test_record_view_missing_address_hashes_unknown(service, view_store):
    await service.record_view("kit-1")
    assert view_store.rows[0].viewer_ip == hash_ip("unknown")


@pytest.mark.asyncio
@pytest.mark.parametrize("presskit_id", [None, "", "   "])
async def test_record_view_requires_presskit_id(service, view_store, presskit_id):
    with pytest.raises(TrackingValidationError, match="Missing epk_id"):
        await service.record_view(presskit_id)
    assert view_store.rows == []


@pytest.mark.asyncio
async def test_record_view_publishes_fact(service, publisher):
    recorded = await service.record_view("kit-1", referrer="https://bandsintown.com/x")

    assert len(publisher.published) == 1
    fact = publisher.published[0]
    assert fact.presskit_id == "kit-1"
    assert fact.view_event_id == recorded.view_event_id
    assert fact.viewer_location == "Berlin, Germany"
    assert fact.referrer == "https://bandsintown.com/x"


@pytest.mark.asyncio
async def test_record_view_survives_geolocation_failure(view_store, click_store, publisher, fold_hashing):
    service = PressKitIngestService(
        views=view_store,
        clicks=click_store,
        geolocation=FakeGeolocation(error=httpx.ConnectTimeout("timed out")),
        publisher=publisher,
    )

    await service.record_view("kit-1", client_ip="203.0.113.7")

    assert view_store.rows[0].viewer_location is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failing_publisher", [FakePublisher(accept=False), FakePublisher(error=RuntimeError("boom"))]
)
async def test_record_view_ignores_publisher_failures(
    view_store, click_store, geolocation, failing_publisher, fold_hashing
):
    service = PressKitIngestService(
        views=view_store, clicks=click_store, geolocation=geolocation, publisher=failing_publisher
    )

    recorded = await service.record_view("kit-1")

    assert recorded.view_event_id == view_store.rows[0].id


@pytest.mark.asyncio
async def test_record_view_store_failure(service, view_store, publisher):
    view_store.fail = True

    with pytest.raises(TrackingStoreError, match="Failed to track view"):
        await service.record_view("kit-1")
    assert publisher.published == []


@pytest.mark.asyncio
async def test_recorded_view_shows_up_in_overview(service, view_store, click_store, presskit_store):
    analytics = PressKitAnalyticsService(
        presskits=presskit_store, views=view_store, clicks=click_store
    )
    before = await analytics.get_overview("kit-1", NOW)

    await service.record_view("kit-1", client_ip="198.51.100.1")
    after = await analytics.get_overview("kit-1", NOW)

    assert after.total_views == before.total_views + 1
    assert after.views_by_date[-1].count == before.views_by_date[-1].count + 1


@pytest.mark.asyncio
async def test_record_click(service, click_store):
    await service.record_click("kit-1", "music", "https://open.spotify.com/x", view_event_id="v-1")

    click = click_store.rows[0]
    assert click.element_type.value == "music"
    assert click.view_id == "v-1"
    assert click.element_url == "https://open.spotify.com/x"


@pytest.mark.asyncio
async def test_record_click_rejects_unknown_type(service, click_store):
    with pytest.raises(TrackingValidationError, match="Invalid element_type"):
        await service.record_click("kit-1", "other", "https://example.com")
    assert click_store.rows == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "presskit_id, element_type, element_url",
    [(None, "music", "https://x"), ("kit-1", None, "https://x"), ("kit-1", "music", "")],
)
async def test_record_click_requires_fields(service, presskit_id, element_type, element_url):
    with pytest.raises(TrackingValidationError, match="Missing required fields"):
        await service.record_click(presskit_id, element_type, element_url)


@pytest.mark.asyncio
async def test_record_duration_last_write_wins(service, view_store):
    recorded = await service.record_view("kit-1")

    assert await service.record_duration(recorded.view_event_id, 42) is True
    assert await service.record_duration(recorded.view_event_id, 17) is True

    assert view_store.rows[0].time_on_page == 17


@pytest.mark.asyncio
async def test_record_duration_unknown_view_is_not_an_error(service):
    assert await service.record_duration("missing", 10) is False


@pytest.mark.asyncio
@pytest.mark.parametrize("seconds", [-1, 1.5, True, None, "10"])
async def test_record_duration_rejects_bad_values(service, seconds):
    with pytest.raises(TrackingValidationError):
        await service.record_duration("v-1", seconds)


@pytest.mark.asyncio
async def test_record_duration_store_failure(service, view_store):
    view_store.fail = True
    with pytest.raises(TrackingStoreError):
        await service.record_duration("v-1", 5)


@pytest.mark.asyncio
async def test_record_section_viewed_dedupes(service, view_store):
    recorded = await service.record_view("kit-1")

    assert await service.record_section_viewed(recorded.view_event_id, "music") is True
    assert await service.record_section_viewed(recorded.view_event_id, "music") is False
    assert await service.record_section_viewed(recorded.view_event_id, "press") is True

    assert view_store.rows[0].sections_viewed == ["music", "press"]


@pytest.mark.asyncio
async def test_record_section_viewed_rejects_long_names(service):
    with pytest.raises(TrackingValidationError):
        await service.record_section_viewed("v-1", "x" * 101)
