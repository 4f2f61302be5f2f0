import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.rate_limit import limiter
from geo.zone_names import ZoneNameLookup
from main import build_services


@pytest.fixture
def client(settings, session_factory, fake_redis, zones_path):
    limiter.reset()
    services = build_services(
        settings, session_factory, fake_redis, zone_names=ZoneNameLookup(zones_path)
    )
    with TestClient(create_app(services, settings)) as test_client:
        yield test_client
