import pytest
from pydantic import ValidationError

from settings import APISettings, RegionSettings, Settings, TariffSettings


@pytest.mark.unit
class TestSettings:
    def test_defaults(self, settings):
        assert settings.zone.resolution == 7
        assert settings.tariff.base_fare == 9.0
        assert settings.rate_limit.per_hour == 5
        assert settings.rate_limit.per_day == 20
        assert settings.fraud.time_feasibility_enabled is False
        assert settings.region.timezone == "Africa/Cairo"

    def test_api_key_is_required(self, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)

        with pytest.raises(ValidationError, match="API_KEY"):
            APISettings()

    def test_tariff_modifiers_must_be_ordered(self):
        with pytest.raises(ValidationError):
            TariffSettings(min_modifier=0.5, max_modifier=0.2)

    def test_region_bounds_must_be_ordered(self):
        with pytest.raises(ValidationError):
            RegionSettings(min_lat=32.0, max_lat=22.0)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_PER_HOUR", "3")
        monkeypatch.setenv("ZONE_RESOLUTION", "8")

        settings = Settings()

        assert settings.rate_limit.per_hour == 3
        assert settings.zone.resolution == 8

    def test_resolution_out_of_range(self, monkeypatch):
        monkeypatch.setenv("ZONE_RESOLUTION", "16")

        with pytest.raises(ValidationError):
            Settings()

    def test_bootstrap_admin_ids(self, monkeypatch):
        monkeypatch.setenv("SECURITY_BOOTSTRAP_ADMINS", "admin-1, admin-2,,")

        assert Settings().security.bootstrap_admin_ids() == ["admin-1", "admin-2"]
