from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient

from app.features.presskit_analytics.api.router import (
    get_analytics_service,
    get_ingest_service,
)
from app.features.presskit_analytics.services.analytics_service import PressKitAnalyticsService
from app.features.presskit_analytics.services.ingest_service import PressKitIngestService
from app.main import app
from tests.fakes import (
    FakeClickStore,
    FakeGeolocation,
    FakePressKitStore,
    FakePublisher,
    FakeViewStore,
    make_presskit,
)


@pytest.fixture
def stores():
    return {
        "views": FakeViewStore(),
        "clicks": FakeClickStore(),
        "presskits": FakePressKitStore(
            make_presskit(), make_presskit(id="kit-2", user_id="someone-else", slug="other")
        ),
        "publisher": FakePublisher(),
    }


@pytest.fixture
def client(stores, apply_auth_override, monkeypatch):
    monkeypatch.setattr("app.security.hashing.settings.IP_HASH_MODE", "fold")
    ingest = PressKitIngestService(
        views=stores["views"],
        clicks=stores["clicks"],
        geolocation=FakeGeolocation(),
        publisher=stores["publisher"],
    )
    analytics = PressKitAnalyticsService(
        presskits=stores["presskits"], views=stores["views"], clicks=stores["clicks"]
    )
    app.dependency_overrides[get_ingest_service] = lambda: ingest
    app.dependency_overrides[get_analytics_service] = lambda: analytics
    apply_auth_override(app)

    yield TestClient(app)

    app.dependency_overrides.clear()


def test_track_view(client, stores):
    response = client.post(
        "/api/track/view",
        json={"epk_id": "kit-1", "referrer": "https://bandsintown.com/x"},
        headers={"user-agent": "pytest-agent"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["view_id"] == stores["views"].rows[0].id
    assert "viewed_at" in data
    assert stores["views"].rows[0].user_agent == "pytest-agent"
    assert len(stores["publisher"].published) == 1
    assert "X-Request-ID" in response.headers


def test_track_view_missing_presskit(client):
    response = client.post("/api/track/view", json={})

    assert response.status_code == 400
    assert response.json() == {"detail": "Missing epk_id"}


def test_track_view_malformed_body(client):
    response = client.post(
        "/api/track/view", content="not json", headers={"content-type": "application/json"}
    )

    assert response.status_code == 400


def test_track_view_store_failure(client, stores):
    stores["views"].fail = True

    response = client.post("/api/track/view", json={"epk_id": "kit-1"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to track view"}


def test_duration_update_and_beacon(client, stores):
    view_id = client.post("/api/track/view", json={"epk_id": "kit-1"}).json()["view_id"]

    response = client.put("/api/track/view", json={"view_id": view_id, "time_on_page": 42})
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert stores["views"].rows[0].time_on_page == 42

    response = client.post(
        "/api/track/view/duration",
        content=f'{{"view_id": "{view_id}", "time_on_page": 17}}',
        headers={"content-type": "text/plain;charset=UTF-8"},
    )
    assert response.status_code == 200
    assert stores["views"].rows[0].time_on_page == 17


def test_duration_for_unknown_view_still_succeeds(client):
    response = client.put("/api/track/view", json={"view_id": "missing", "time_on_page": 5})

    assert response.status_code == 200
    assert response.json() == {"success": True}


@pytest.mark.parametrize(
    "body", [{"time_on_page": 5}, {"view_id": "v-1"}, {"view_id": "v-1", "time_on_page": -3}]
)
def test_duration_validation(client, body):
    assert client.put("/api/track/view", json=body).status_code == 400


def test_beacon_rejects_garbage(client):
    response = client.post("/api/track/view/duration", content="garbage")

    assert response.status_code == 400


def test_track_click(client, stores):
    response = client.post(
        "/api/track/click",
        json={"epk_id": "kit-1", "element_type": "music", "element_url": "https://open.spotify.com/x"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert stores["clicks"].rows[0].element_type.value == "music"


def test_track_click_invalid_type(client, stores):
    response = client.post(
        "/api/track/click",
        json={"epk_id": "kit-1", "element_type": "other", "element_url": "https://x.test"},
    )

    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid element_type"}
    assert stores["clicks"].rows == []


def test_track_click_missing_fields(client):
    response = client.post("/api/track/click", json={"epk_id": "kit-1"})

    assert response.status_code == 400
    assert response.json() == {"detail": "Missing required fields"}


def test_track_section(client):
    view_id = client.post("/api/track/view", json={"epk_id": "kit-1"}).json()["view_id"]

    first = client.post("/api/track/section", json={"view_id": view_id, "section": "music"})
    second = client.post("/api/track/section", json={"view_id": view_id, "section": "music"})

    assert first.json() == {"success": True, "added": True}
    assert second.json() == {"success": True, "added": False}


def test_analytics_overview_for_owner(client):
    client.post("/api/track/view", json={"epk_id": "kit-1", "referrer": "https://bandsintown.com/x"})
    client.post(
        "/api/track/click",
        json={"epk_id": "kit-1", "element_type": "video", "element_url": "https://youtu.be/x"},
    )

    response = client.get(
        "/api/presskits/kit-1/analytics", params={"now": "2026-10-19T18:00:00Z"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_views"] == 1
    assert data["unique_views"] == 1
    assert data["total_clicks"] == 1
    assert data["clicks_by_type"] == [{"type": "video", "count": 1}]
    assert data["top_referrers"] == [{"referrer": "bandsintown.com", "count": 1}]
    assert len(data["views_by_date"]) == 30
    assert data["views_by_date"][-1] == {"date": "2026-10-19", "count": 1}
    assert len(data["recent_views"]) == 1


@pytest.mark.parametrize("presskit_id", ["kit-2", "does-not-exist"])
def test_analytics_hidden_from_non_owners(client, presskit_id):
    response = client.get(f"/api/presskits/{presskit_id}/analytics")

    assert response.status_code == 404


def test_analytics_requires_authentication(stores):
    app.dependency_overrides[get_analytics_service] = lambda: PressKitAnalyticsService(
        presskits=stores["presskits"], views=stores["views"], clicks=stores["clicks"]
    )
    try:
        response = TestClient(app).get("/api/presskits/kit-1/analytics")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code in (401, 403)


def test_analytics_store_failure(client, stores):
    stores["views"].fail = True

    response = client.get("/api/presskits/kit-1/analytics")

    assert response.status_code == 503


def test_view_timestamp_comes_from_store(client, stores):
    stores["views"].now = datetime(2026, 10, 1, 9, 0, tzinfo=UTC)

    data = client.post("/api/track/view", json={"epk_id": "kit-1"}).json()

    assert data["viewed_at"].startswith("2026-10-01T09:00:00")
