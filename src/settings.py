from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ZoneSettings(BaseSettings):
    resolution: int = Field(
        default=7,
        ge=0,
        le=15,
        description="H3 resolution used for trip zones (7 is ~5 km2, neighborhood scale)",
    )
    names_path: str = Field(
        default="data/zones/mansoura.geojson",
        description="GeoJSON of named areas used for zone display names (empty disables)",
    )

    model_config = SettingsConfigDict(env_prefix="ZONE_")


class TariffSettings(BaseSettings):
    """Official metered tariff and the negotiated-fare tolerance around it."""

    base_fare: float = Field(default=9.0, ge=0.0)
    per_km_rate: float = Field(default=3.5, gt=0.0)
    min_modifier: float = Field(
        default=0.15,
        ge=-1.0,
        description="Minimum allowed fare = official * (1 + min_modifier)",
    )
    max_modifier: float = Field(
        default=1.0,
        ge=-1.0,
        description="Maximum allowed fare = official * (1 + max_modifier)",
    )

    model_config = SettingsConfigDict(env_prefix="TARIFF_")

    @model_validator(mode="after")
    def validate_modifier_order(self) -> "TariffSettings":
        if self.max_modifier < self.min_modifier:
            raise ValueError(
                f"TARIFF_MAX_MODIFIER ({self.max_modifier}) must be >= "
                f"TARIFF_MIN_MODIFIER ({self.min_modifier})"
            )
        return self


class RateLimitSettings(BaseSettings):
    per_hour: int = Field(default=5, ge=1)
    per_day: int = Field(default=20, ge=1)
    retention_hours: int = Field(
        default=48,
        ge=25,
        description="Counter rows become eligible for deletion after this many hours",
    )

    model_config = SettingsConfigDict(env_prefix="RATE_LIMIT_")


class RegionSettings(BaseSettings):
    """Geographic bounding box of the service region (Egypt by default)."""

    min_lat: float = Field(default=22.0, ge=-90.0, le=90.0)
    max_lat: float = Field(default=32.0, ge=-90.0, le=90.0)
    min_lng: float = Field(default=25.0, ge=-180.0, le=180.0)
    max_lng: float = Field(default=37.0, ge=-180.0, le=180.0)
    timezone: str = Field(
        default="Africa/Cairo",
        description="IANA timezone used to derive time-of-day and day-of-week",
    )

    model_config = SettingsConfigDict(env_prefix="REGION_")

    @model_validator(mode="after")
    def validate_bounds(self) -> "RegionSettings":
        if self.min_lat >= self.max_lat:
            raise ValueError("REGION_MIN_LAT must be lower than REGION_MAX_LAT")
        if self.min_lng >= self.max_lng:
            raise ValueError("REGION_MIN_LNG must be lower than REGION_MAX_LNG")
        return self

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


class FraudSettings(BaseSettings):
    duplicate_window_minutes: int = Field(default=30, ge=1, le=1440)
    same_zone_window_minutes: int = Field(default=30, ge=1, le=1440)
    time_feasibility_enabled: bool = Field(
        default=False,
        description="Reject trips that start before the user's previous trip ended",
    )
    latest_trip_cache_ttl_seconds: int = Field(default=300, ge=1, le=86400)

    model_config = SettingsConfigDict(env_prefix="FRAUD_")


class SimilaritySettings(BaseSettings):
    min_samples: int = Field(default=4, ge=4)
    relative_distance_tolerance: float = Field(default=0.2, gt=0.0, le=1.0)
    hour_window: int = Field(default=2, ge=0, le=12)
    query_limit: int = Field(
        default=100,
        ge=1,
        le=500,
        description="Maximum rows fetched per similarity query",
    )
    max_distance_km: float = Field(default=5.0, gt=0.0, le=100.0)
    max_time_diff_hours: int = Field(default=2, ge=0, le=12)
    max_distance_diff_km: float = Field(default=2.0, ge=0.0, le=100.0)

    model_config = SettingsConfigDict(env_prefix="SIMILARITY_")


class DatabaseSettings(BaseSettings):
    url: str = "sqlite:///data/fares.db"

    model_config = SettingsConfigDict(env_prefix="DATABASE_")


class RedisSettings(BaseSettings):
    enabled: bool = True
    host: str = "localhost"
    port: int = 6379
    password: str = ""
    ssl: bool = False

    model_config = SettingsConfigDict(env_prefix="REDIS_")


class APISettings(BaseSettings):
    key: str = ""
    allow_user_id_override: bool = Field(
        default=False,
        description="Honour user_id in request bodies (testing and trusted callers only)",
    )
    analyze_rate_limit: str = "60/minute"

    model_config = SettingsConfigDict(env_prefix="API_")

    @model_validator(mode="after")
    def validate_credentials_provided(self) -> "APISettings":
        if not self.key:
            raise ValueError("Required credential not provided: API_KEY")
        return self


class SecuritySettings(BaseSettings):
    ip_hash_salt: str = ""
    bootstrap_admins: str = ""

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    def bootstrap_admin_ids(self) -> list[str]:
        return [uid.strip() for uid in self.bootstrap_admins.split(",") if uid.strip()]


class LogSettings(BaseSettings):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["text", "json"] = "text"
    environment: str = "development"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class CORSSettings(BaseSettings):
    origins: str = "http://localhost:8081,http://localhost:19006"

    model_config = SettingsConfigDict(env_prefix="CORS_")

    @field_validator("origins")
    @classmethod
    def strip_origins(cls, v: str) -> str:
        return ",".join(o.strip() for o in v.split(",") if o.strip())


class Settings(BaseSettings):
    zone: ZoneSettings = Field(default_factory=ZoneSettings)
    tariff: TariffSettings = Field(default_factory=TariffSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    region: RegionSettings = Field(default_factory=RegionSettings)
    fraud: FraudSettings = Field(default_factory=FraudSettings)
    similarity: SimilaritySettings = Field(default_factory=SimilaritySettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    api: APISettings = Field(default_factory=APISettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    log: LogSettings = Field(default_factory=LogSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
