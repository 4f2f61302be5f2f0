"""HTTP API tests."""

import pytest

from tests.factories import DESTINATION, ORIGIN

API_KEY = {"X-API-Key": "test-api-key"}


def _headers(user_id=None):
    result = dict(API_KEY)
    if user_id:
        result["X-User-ID"] = user_id
    return result


def _analyze_query(**overrides):
    query = {
        "fromLat": ORIGIN[0],
        "fromLng": ORIGIN[1],
        "toLat": DESTINATION[0],
        "toLng": DESTINATION[1],
        "distance": 10.0,
    }
    query.update(overrides)
    return query


@pytest.mark.unit
class TestAuth:
    def test_health_needs_no_key(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_missing_key_is_rejected(self, client, trip_payload):
        response = client.post("/trips", json=trip_payload())

        assert response.status_code == 422

    def test_wrong_key_is_rejected(self, client, trip_payload):
        response = client.post(
            "/trips", json=trip_payload(), headers={"X-API-Key": "nope", "X-User-ID": "rider-1"}
        )

        assert response.status_code == 401

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_is_generated(self, client):
        response = client.get("/health")

        assert response.headers["X-Request-ID"]


@pytest.mark.unit
class TestTripRoutes:
    def test_submit_trip(self, client, trip_payload):
        response = client.post("/trips", json=trip_payload(), headers=_headers("rider-1"))

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["status"] == "accepted"
        assert body["tripId"]
        assert "error" not in body

    def test_submit_without_user_is_unauthenticated(self, client, trip_payload):
        response = client.post("/trips", json=trip_payload(), headers=_headers())

        assert response.json() == {
            "success": False,
            "error": "Sign in to submit trips",
            "code": "unauthenticated",
        }

    def test_body_user_id_ignored_without_override(self, client, trip_payload):
        response = client.post("/trips", json=trip_payload(user_id="rider-9"), headers=_headers())

        assert response.json()["code"] == "unauthenticated"

    def test_invalid_trip_lists_reasons(self, client, trip_payload):
        response = client.post(
            "/trips", json=trip_payload(fare=0, passenger_count=12), headers=_headers("rider-1")
        )

        body = response.json()
        assert body["code"] == "invalid_trip_data"
        assert len(body["details"]["reasons"]) == 2

    def test_analyze(self, client, trip_payload):
        client.post("/trips", json=trip_payload(), headers=_headers("rider-1"))

        response = client.post("/trips/analyze", json=_analyze_query(), headers=_headers())

        data = response.json()["data"]
        assert data["similarTripsCount"] == 1
        assert data["averageFare"] == 60.0
        assert set(data["byTimeOfDay"]) == {"morning", "afternoon", "evening", "night"}
        assert "user_id" not in data["recentTrips"][0]

    def test_analyze_invalid_parameters(self, client):
        response = client.post(
            "/trips/analyze", json=_analyze_query(distance=-1), headers=_headers()
        )

        assert response.json()["code"] == "invalid_parameters"


@pytest.mark.unit
class TestRoleRoutes:
    def test_read_own_role(self, client):
        response = client.get("/users/rider-1/role", headers=_headers("rider-1"))

        assert response.json() == {
            "success": True,
            "userId": "rider-1",
            "role": "user",
            "isAdmin": False,
        }

    def test_cannot_read_other_role(self, client):
        response = client.get("/users/rider-2/role", headers=_headers("rider-1"))

        assert response.json()["code"] == "forbidden"

    def test_admin_grants_role(self, client, role_repository):
        role_repository.ensure_admins(["admin-1"])

        granted = client.put(
            "/users/rider-1/role", json={"role": "admin"}, headers=_headers("admin-1")
        )
        read_back = client.get("/users/rider-1/role", headers=_headers("admin-1"))

        assert granted.json()["success"] is True
        assert read_back.json()["isAdmin"] is True

    def test_non_admin_cannot_grant(self, client, role_repository):
        response = client.put(
            "/users/rider-1/role", json={"role": "admin"}, headers=_headers("rider-1")
        )

        assert response.json()["code"] == "forbidden"
        assert role_repository.is_admin("rider-1") is False


@pytest.mark.unit
class TestAdminRoutes:
    def test_backfill_requires_admin(self, client):
        response = client.post("/admin/zones/backfill", json={}, headers=_headers("rider-1"))

        assert response.json()["code"] == "forbidden"

    def test_backfill_fills_missing_zones(self, client, role_repository, trip_repository, make_trip):
        role_repository.ensure_admins(["admin-1"])
        trip_id = trip_repository.insert(make_trip(from_zone=None, to_zone=None))

        response = client.post(
            "/admin/zones/backfill", json={"batchSize": 10}, headers=_headers("admin-1")
        )

        body = response.json()
        assert body["success"] is True
        assert body["totalUpdated"] == 1
        assert body["resolution"] == 7
        assert trip_repository.get(trip_id).from_zone is not None


@pytest.mark.unit
class TestZoneRoutes:
    def test_lookup(self, client, zone_indexer):
        response = client.get(
            "/zones/lookup", params={"lat": ORIGIN[0], "lng": ORIGIN[1]}, headers=_headers()
        )

        body = response.json()
        assert body["success"] is True
        assert body["zoneId"] == zone_indexer.zone_of(*ORIGIN)
        assert body["name"] == "Mohafza"

    def test_lookup_outside_region(self, client):
        response = client.get("/zones/lookup", params={"lat": 48.85, "lng": 2.35}, headers=_headers())

        assert response.json()["success"] is False
