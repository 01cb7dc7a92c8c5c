"""
REST API 測試

以 TestClient 搭配記憶體資料庫測試各端點。
"""

import pytest
from datetime import date
from unittest.mock import patch

from fastapi.testclient import TestClient

from marine_calendar import __version__
from marine_calendar.api import app
from marine_calendar.config import SPECIES
from marine_calendar.exceptions import StorageError
from marine_calendar.services import get_services

COORDS = {"latitude": 38.6979, "longitude": -9.4215}


@pytest.fixture
def client(services):
    """覆寫服務依賴的測試客戶端"""
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _catch_payload(**overrides):
    payload = {
        "date": "2024-01-11T06:30:00",
        "location": {"name": "卡斯凱什淺灘", "latitude": 38.69, "longitude": -9.42, "depth": 15},
        "catches": [
            {"species": "seabass", "count": 2, "totalWeight": 3.5, "bait": "活蝦"},
            {"species": "SARDINE", "count": 10, "totalWeight": 1.5},
        ],
        "angler": "João",
    }
    payload.update(overrides)
    return payload


class TestBasicEndpoints:
    """基本端點測試"""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["health"] == "/api/v1/health"

    def test_health(self, client):
        data = client.get("/api/v1/health").json()

        assert data["status"] == "healthy"
        assert data["version"] == __version__

    def test_species(self, client):
        data = client.get("/api/v1/species").json()

        assert len(data["species"]) == len(SPECIES)
        assert "TUNA" in {s["code"] for s in data["species"]}


class TestFishingConditions:
    """漁況端點測試"""

    def test_single_day(self, client):
        response = client.get("/api/v1/fishing-conditions", params={
            "date": "2024-06-01", "targetSpecies": "TUNA,SEABASS", **COORDS
        })
        data = response.json()

        assert response.status_code == 200
        assert len(data["conditions"]) == 1
        assert data["conditions"][0]["date"] == "2024-06-01"
        assert 1 <= data["conditions"][0]["overall_rating"] <= 10
        assert data["metadata"]["target_species"] == ["TUNA", "SEABASS"]

    def test_range(self, client):
        data = client.get("/api/v1/fishing-conditions", params={
            "startDate": "2024-06-01", "endDate": "2024-06-07", **COORDS
        }).json()

        assert [c["date"] for c in data["conditions"]][0] == "2024-06-01"
        assert len(data["conditions"]) == 7

    def test_period_too_long(self, client):
        response = client.get("/api/v1/fishing-conditions", params={
            "startDate": "2024-01-01", "endDate": "2024-03-01", **COORDS
        })
        data = response.json()

        assert response.status_code == 400
        assert data["error"] == "Invalid query parameters"
        assert data["details"][0]["field"] == "endDate"
        assert "timestamp" in data

    def test_unexpected_error_returns_500(self, client, services):
        with patch.object(services.aggregator, "compute_period", side_effect=RuntimeError("boom")):
            response = client.get("/api/v1/fishing-conditions", params={
                "date": "2024-06-01", **COORDS
            })

        assert response.status_code == 500
        assert response.json()["error"] == "Internal Server Error"
        assert "boom" not in response.text

    def test_nan_latitude_rejected(self, client):
        """非有限座標回傳 400 而非 500"""
        response = client.get("/api/v1/fishing-conditions", params={
            "date": "2024-06-01", "latitude": "nan", "longitude": "-9.42"
        })

        assert response.status_code == 400
        assert [d["field"] for d in response.json()["details"]] == ["latitude"]


class TestLunarPhases:
    """月相端點測試"""

    def test_month(self, client, services):
        data = client.get("/api/v1/lunar-phases", params={
            "startDate": "2024-01-01", "endDate": "2024-01-31"
        }).json()

        assert len(data["phases"]) == 31
        assert len(data["events"]["new_moons"]) == 1
        assert data["metadata"]["force_recalculate"] is False
        assert services.lunar_cache.get(date(2024, 1, 15)) is not None

    def test_force_recalculate(self, client, services):
        with patch.object(services.lunar_cache, "refresh", wraps=services.lunar_cache.refresh) as refresh:
            client.get("/api/v1/lunar-phases", params={
                "startDate": "2024-01-01", "endDate": "2024-01-03", "forceRecalculate": "true"
            })

        assert refresh.call_count == 3

    def test_missing_dates(self, client):
        response = client.get("/api/v1/lunar-phases")

        assert response.status_code == 400
        assert {d["field"] for d in response.json()["details"]} == {"startDate", "endDate"}


class TestMigrationEvents:
    """洄游事件端點測試"""

    def test_computed_events(self, client):
        data = client.get("/api/v1/migration-events", params={
            "startDate": "2024-04-01", "endDate": "2024-06-30", "species": "SEABASS", **COORDS
        }).json()

        assert data["metadata"]["total_events"] == len(data["events"]) > 0
        assert data["species_details"][0]["species"] == "SEABASS"
        assert data["recommendations"]

    def test_unknown_species(self, client):
        response = client.get("/api/v1/migration-events", params={
            "startDate": "2024-04-01", "endDate": "2024-06-30", "species": "KRAKEN", **COORDS
        })

        assert response.status_code == 400

    def test_post_upserts_and_merges(self, client, services):
        payload = {
            "species": "seabass",
            "eventType": "arrival",
            "date": "2024-05-01T00:00:00",
            "location": {"latitude": 38.6979, "longitude": -9.4215, "name": "Cascais"},
            "probability": 0.95,
        }

        first = client.post("/api/v1/migration-events", json=payload)
        second = client.post("/api/v1/migration-events", json={**payload, "probability": 0.9})

        assert first.status_code == second.status_code == 200
        assert second.json()["event"]["description"] == "arrival for SEABASS"
        assert len(services.migration_store.query(date(2024, 5, 1), date(2024, 5, 1))) == 1

        data = client.get("/api/v1/migration-events", params={
            "startDate": "2024-04-25", "endDate": "2024-05-05",
            "species": "SEABASS", "eventTypes": "arrival", **COORDS
        }).json()
        stored = [e for e in data["events"] if e["date"] == "2024-05-01"]

        assert stored[0]["probability"] == 0.9
        assert stored[0]["data_source"] == "API Input"

    def test_post_unknown_species(self, client):
        response = client.post("/api/v1/migration-events", json={
            "species": "KRAKEN",
            "eventType": "peak",
            "date": "2024-05-01T00:00:00",
            "location": COORDS,
        })

        assert response.status_code == 400

    def test_post_invalid_body(self, client):
        response = client.post("/api/v1/migration-events", json={
            "species": "TUNA",
            "eventType": "hibernation",
            "date": "2024-05-01T00:00:00",
            "location": COORDS,
        })

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "eventType"


class TestHistoricalData:
    """歷史漁獲端點測試"""

    def test_post_then_get(self, client):
        response = client.post("/api/v1/historical-data", json=_catch_payload())
        record = response.json()["catch_record"]

        assert response.status_code == 200
        assert record["total_weight"] == 5.0
        assert record["total_count"] == 12
        assert record["lunar_phase"] == "NEW_MOON"

        data = client.get("/api/v1/historical-data").json()

        assert data["analysis_type"] == "summary"
        assert data["data"]["total_records"] == 1
        assert data["metadata"]["filtered_by_location"] is False

    def test_location_filter(self, client):
        client.post("/api/v1/historical-data", json=_catch_payload())

        data = client.get("/api/v1/historical-data", params={
            "latitude": 40.0, "longitude": -8.0, "radius": 5
        }).json()

        assert data["metadata"]["original_records"] == 1
        assert data["metadata"]["total_records"] == 0
        assert data["metadata"]["filtered_by_location"] is True

    def test_trends(self, client):
        client.post("/api/v1/historical-data", json=_catch_payload())
        client.post("/api/v1/historical-data", json=_catch_payload(date="2024-02-20T18:00:00"))

        data = client.get("/api/v1/historical-data", params={
            "analysisType": "trends", "groupBy": "month"
        }).json()

        assert [t["period"] for t in data["data"]["trends"]] == ["2024-01", "2024-02"]

    def test_empty_catches_rejected(self, client):
        response = client.post("/api/v1/historical-data", json=_catch_payload(catches=[]))

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "catches"

    def test_invalid_limit(self, client):
        response = client.get("/api/v1/historical-data", params={"limit": 1000})
        assert response.status_code == 400

    def test_storage_error_returns_500(self, client, services):
        with patch.object(services.catch_store, "search", side_effect=StorageError("db locked")):
            response = client.get("/api/v1/historical-data")

        assert response.status_code == 500
        assert response.json()["details"] == "Storage unavailable"
        assert "db locked" not in response.text
