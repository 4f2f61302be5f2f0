import os

# API_KEY has no default (the service must fail without it).
# Provide a test value so Settings() can be constructed in tests.
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("REDIS_ENABLED", "false")

from collections.abc import Callable
from pathlib import Path
from typing import Any

import fakeredis
import pytest

from analysis import SimilarityAnalyzer
from db.database import init_database
from db.repositories import RateLimitRepository, TripRepository, UserRoleRepository
from geo import ZoneIndexer
from pricing import TariffCalculator
from redis_client import LatestTripEndCache
from settings import Settings
from tests.factories import DESTINATION, NOW, ORIGIN, FixedClock
from trip import Coordinate, Trip
from validation import FraudGuard, RateLimiter, ValidationPipeline


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def temp_sqlite_db(tmp_path: Path) -> str:
    """URL of a fresh SQLite database file."""
    return f"sqlite:///{tmp_path / 'fares.db'}"


@pytest.fixture
def session_factory(temp_sqlite_db: str):
    return init_database(temp_sqlite_db)


@pytest.fixture
def trip_repository(session_factory) -> TripRepository:
    return TripRepository(session_factory)


@pytest.fixture
def rate_limit_repository(session_factory) -> RateLimitRepository:
    return RateLimitRepository(session_factory)


@pytest.fixture
def role_repository(session_factory) -> UserRoleRepository:
    return UserRoleRepository(session_factory)


@pytest.fixture
def zone_indexer() -> ZoneIndexer:
    return ZoneIndexer(7)


@pytest.fixture
def fake_redis() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def latest_trip_cache(fake_redis: fakeredis.FakeRedis) -> LatestTripEndCache:
    return LatestTripEndCache(fake_redis, ttl_seconds=300)


@pytest.fixture
def zones_path() -> Path:
    return Path(__file__).parent.parent / "data" / "zones" / "mansoura.geojson"


@pytest.fixture
def make_trip(zone_indexer: ZoneIndexer) -> Callable[..., Trip]:
    """Factory for stored trips on the ORIGIN -> DESTINATION route."""

    def _make(**overrides: Any) -> Trip:
        origin = overrides.pop("origin", ORIGIN)
        destination = overrides.pop("destination", DESTINATION)
        fields: dict[str, Any] = {
            "user_id": "rider-1",
            "fare": 60.0,
            "distance": 10.0,
            "duration": 25.0,
            "origin": Coordinate(lat=origin[0], lng=origin[1]),
            "destination": Coordinate(lat=destination[0], lng=destination[1]),
            "start_time": NOW,
            "submitted_at": NOW,
            "from_zone": zone_indexer.zone_of(*origin),
            "to_zone": zone_indexer.zone_of(*destination),
            "date": "2025-03-12",
            "month": 3,
            "time_of_day": 12,
            "day_of_week": 3,
        }
        fields.update(overrides)
        return Trip(**fields)

    return _make


@pytest.fixture
def trip_payload() -> Callable[..., dict[str, Any]]:
    """Factory for raw SubmitTrip payloads on the ORIGIN -> DESTINATION route."""

    def _payload(**overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "fare": 60.0,
            "distance": 10.0,
            "duration": 25.0,
            "passenger_count": 1,
            "from": {"lat": ORIGIN[0], "lng": ORIGIN[1], "name": "Mohafza"},
            "to": {"lat": DESTINATION[0], "lng": DESTINATION[1]},
            "start_time": "2025-03-12T10:00:00Z",
            "governorate": "Dakahlia",
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def rate_limiter(rate_limit_repository: RateLimitRepository, clock: FixedClock) -> RateLimiter:
    return RateLimiter(rate_limit_repository, per_hour=5, per_day=20, clock=clock)


@pytest.fixture
def fraud_guard(
    trip_repository: TripRepository,
    latest_trip_cache: LatestTripEndCache,
    clock: FixedClock,
) -> FraudGuard:
    return FraudGuard(trip_repository, latest_trip_cache=latest_trip_cache, clock=clock)


@pytest.fixture
def pipeline(
    settings: Settings,
    trip_repository: TripRepository,
    role_repository: UserRoleRepository,
    rate_limiter: RateLimiter,
    fraud_guard: FraudGuard,
    zone_indexer: ZoneIndexer,
    latest_trip_cache: LatestTripEndCache,
    clock: FixedClock,
) -> ValidationPipeline:
    return ValidationPipeline(
        trips=trip_repository,
        roles=role_repository,
        rate_limiter=rate_limiter,
        fraud_guard=fraud_guard,
        tariff=TariffCalculator(base_fare=9.0, per_km_rate=3.5),
        zone_indexer=zone_indexer,
        region=settings.region,
        similarity=settings.similarity,
        latest_trip_cache=latest_trip_cache,
        clock=clock,
    )


@pytest.fixture
def analyzer(
    settings: Settings,
    trip_repository: TripRepository,
    zone_indexer: ZoneIndexer,
) -> SimilarityAnalyzer:
    return SimilarityAnalyzer(trip_repository, zone_indexer, settings.region, settings.similarity)
