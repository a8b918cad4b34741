"""Tests for HTTP endpoints."""

from datetime import UTC, datetime

from fastapi.testclient import TestClient
from httpx import Response

from macroscan.api.app import create_app
from macroscan.containers import AppContainer
from macroscan.services.errors import PARSE_MESSAGE
from tests.conftest import FakeVisionClient, make_payload

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"rest"


def _client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


def _upload(
    client: TestClient, captured_at: str = "2026-03-01T12:00:00+00:00"
) -> Response:
    return client.post(
        "/scans",
        params={"captured_at": captured_at},
        content=PNG_BYTES,
        headers={"Content-Type": "image/png"},
    )


def test_health(container: AppContainer) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_scan_and_fetch(container: AppContainer) -> None:
    client = _client(container)

    response = _upload(client)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "passed"
    assert data["scan"]["ratio"] == {"carb": 59, "protein": 19, "fat": 22}
    assert data["scan"]["display_name"] == "Oat Crackers"
    assert "brand" not in data["scan"]["classified_data"]
    assert data["alternatives"][0]["description"] == "Whole grain crackers"

    scan_id = data["scan"]["id"]
    fetched = client.get(f"/scans/{scan_id}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == scan_id
    assert client.get(f"/scans/{scan_id}/report").status_code == 404

    listing = client.get("/scans", params={"status": "passed"})
    assert [scan["id"] for scan in listing.json()["scans"]] == [scan_id]
    assert client.get("/scans/stats").json()["passed"] == 1


def test_create_scan_rejects_non_image(container: AppContainer) -> None:
    response = _client(container).post(
        "/scans", content=b"{}", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 415


def test_create_scan_vision_failure_returns_502(container: AppContainer) -> None:
    vision_client = container.vision_service.client
    assert isinstance(vision_client, FakeVisionClient)
    vision_client.answers = ["not json"]

    response = _upload(_client(container))

    assert response.status_code == 502
    assert response.json()["detail"] == PARSE_MESSAGE


def test_failed_scan_report_endpoint(container: AppContainer) -> None:
    vision_client = container.vision_service.client
    assert isinstance(vision_client, FakeVisionClient)
    vision_client.payload = make_payload(ratio=None)
    client = _client(container)

    scan_id = _upload(client).json()["scan"]["id"]
    report = client.get(f"/scans/{scan_id}/report")

    assert report.status_code == 200
    assert report.json()["level1_missing_fields"] == ["ratio"]


def test_update_and_delete_scan(container: AppContainer) -> None:
    client = _client(container)
    scan_id = _upload(client).json()["scan"]["id"]

    patched = client.patch(f"/scans/{scan_id}", json={"name": "Crackers"})
    deleted = client.delete(f"/scans/{scan_id}")

    assert patched.status_code == 200
    assert patched.json()["display_name"] == "Crackers"
    assert deleted.status_code == 204
    assert client.get(f"/scans/{scan_id}").status_code == 404
    assert client.delete(f"/scans/{scan_id}").status_code == 404


def test_cleanup_endpoint(container: AppContainer) -> None:
    client = _client(container)
    _upload(client, "2026-03-01T08:00:00+00:00")
    _upload(client, "2026-03-01T09:00:00+00:00")

    response = client.post("/scans/cleanup", params={"keep": 1})

    assert response.json() == {"deleted": 1}
    assert client.post("/scans/cleanup", params={"keep": -1}).status_code == 422


def test_daily_endpoints(container: AppContainer) -> None:
    client = _client(container)
    _upload(client)

    day = client.get("/daily/2026-03-01", params={"target_calories": 1000})
    recomputed = client.post("/daily/2026-03-01/recompute")
    listing = client.get(
        "/daily", params={"start": "2026-03-01", "end": "2026-03-31"}
    )
    average = client.get(
        "/daily/average", params={"start": "2026-03-01", "end": "2026-03-31"}
    )

    assert day.json()["total_calories"] == 250
    assert day.json()["completion_percentage"] == 25
    assert recomputed.json()["scan_count"] == 1
    assert [entry["day"] for entry in listing.json()["days"]] == ["2026-03-01"]
    assert average.json()["avg_calories"] == 250
    bad_range = client.get(
        "/daily", params={"start": "2026-03-31", "end": "2026-03-01"}
    )
    assert bad_range.status_code == 422


def test_daily_for_empty_day(container: AppContainer) -> None:
    response = _client(container).get("/daily/2026-01-01")

    data = response.json()
    assert data["scan_count"] == 0
    assert data["ratio"] == {"carb": 33, "protein": 33, "fat": 34}
    assert data["updated_at"] is None


def test_target_ratio_endpoints(container: AppContainer) -> None:
    client = _client(container)

    initial = client.get("/settings/target-ratio")
    updated = client.put(
        "/settings/target-ratio", json={"carb": 40, "protein": 30, "fat": 30}
    )
    invalid = client.put(
        "/settings/target-ratio", json={"carb": 40, "protein": 40, "fat": 40}
    )

    assert initial.json() == {"carb": 50, "protein": 30, "fat": 20}
    assert updated.json() == {"carb": 40, "protein": 30, "fat": 30}
    assert invalid.status_code == 422
    assert client.get("/settings/target-ratio").json()["carb"] == 40


def test_toggle_endpoint(container: AppContainer) -> None:
    client = _client(container)

    response = client.put(
        "/settings/toggles/alternatives_enabled", json={"enabled": False}
    )
    unknown = client.put("/settings/toggles/unknown", json={"enabled": True})

    assert response.json() == {"key": "alternatives_enabled", "enabled": False}
    assert unknown.status_code == 404
    scan = _upload(client).json()
    assert scan["alternatives"] == []
    assert scan["scan"]["advice"] is None


def test_scan_timestamps_are_preserved(container: AppContainer) -> None:
    client = _client(container)

    data = _upload(client, "2026-03-01T12:00:00+00:00").json()

    captured_at = datetime.fromisoformat(data["scan"]["captured_at"])
    assert captured_at == datetime(2026, 3, 1, 12, tzinfo=UTC)


def test_profile_endpoints(container: AppContainer) -> None:
    client = _client(container)

    empty = client.get("/profile")
    updated = client.put(
        "/profile",
        json={
            "gender": "male",
            "birth_year": 1990,
            "birth_month": 6,
            "height_cm": 180,
            "weight_kg": 80,
            "activity_level": "moderate",
            "health_goal": "lose",
        },
    )
    invalid = client.put("/profile", json={"birth_month": 13})

    assert empty.json()["target_calories"] == 2000
    assert empty.json()["full_complete"] is False
    data = updated.json()
    assert data["age"] == 35
    assert data["bmi"] == 24.7
    assert data["bmi_category"] == "normal"
    assert data["tdee"] == 2829.1
    assert data["target_calories"] == 2329
    assert data["recommended_ratio"] == {"carb": 40, "protein": 35, "fat": 25}
    assert invalid.status_code == 422
    assert client.get("/settings/target-ratio").json()["carb"] == 40

    assert client.delete("/profile").status_code == 204
    assert client.get("/profile").json()["profile"]["gender"] is None


def test_daily_target_comes_from_profile(container: AppContainer) -> None:
    client = _client(container)
    _upload(client)
    client.put(
        "/profile",
        json={
            "gender": "male",
            "birth_year": 1990,
            "birth_month": 6,
            "height_cm": 180,
            "weight_kg": 80,
            "activity_level": "moderate",
            "health_goal": "lose",
        },
    )

    data = client.get("/daily/2026-03-01").json()

    assert data["target_calories"] == 2329
    assert data["completion_percentage"] == 11
