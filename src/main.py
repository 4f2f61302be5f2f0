"""
Fare Validation Service - Entry Point

Wires the trip store, Redis cache and validation services together and
serves the HTTP API with uvicorn.
"""

import logging
import os
from pathlib import Path
from typing import Any

import redis
import uvicorn
from pydantic import ValidationError
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from analysis import SimilarityAnalyzer
from api.app import Services, create_app
from core.exceptions import ConfigurationError
from db.database import init_database
from db.repositories import RateLimitRepository, TripRepository, UserRoleRepository
from geo import ZoneIndexer
from geo.zone_names import ZoneNameLookup
from pricing import TariffCalculator
from redis_client import LatestTripEndCache
from settings import Settings, get_settings
from validation import FraudGuard, RateLimiter, ValidationPipeline

logger = logging.getLogger(__name__)


def init_otel_sdk() -> None:
    """Initialize OpenTelemetry SDK for metrics and traces.

    Configures TracerProvider and MeterProvider with OTLP gRPC exporters
    pointing to the OTel Collector.
    """
    resource = Resource.create(
        {
            "service.name": "fare-validation",
            "service.version": "1.0.0",
            "deployment.environment": os.getenv("DEPLOYMENT_ENV", "local"),
        }
    )

    otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://otel-collector:4317")
    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    )
    trace.set_tracer_provider(trace_provider)
    logger.info("OpenTelemetry tracing initialized (endpoint=%s)", otlp_endpoint)

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=otlp_endpoint, insecure=True),
        export_interval_millis=15_000,
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    logger.info("OpenTelemetry metrics initialized")


def create_redis_client(settings: Settings) -> "redis.Redis[Any] | None":
    """Create Redis client for the latest-trip cache, or None when disabled."""
    if not settings.redis.enabled:
        return None
    return redis.Redis(
        host=settings.redis.host,
        port=settings.redis.port,
        password=settings.redis.password or None,
        ssl=settings.redis.ssl,
        decode_responses=True,
        socket_timeout=2.0,
    )


def load_settings() -> Settings:
    """Validated settings, or ConfigurationError naming every invalid variable."""
    try:
        return get_settings()
    except ValidationError as e:
        problems = [err["msg"] for err in e.errors()]
        raise ConfigurationError(
            f"Invalid configuration: {'; '.join(problems)}",
            details={"errors": problems},
        ) from e


def load_zone_names(settings: Settings) -> ZoneNameLookup | None:
    if not settings.zone.names_path:
        return None
    path = Path(settings.zone.names_path)
    if not path.exists():
        logger.warning(f"Zone names file not found at {path}, display names disabled")
        return None
    return ZoneNameLookup(path)


def build_services(
    settings: Settings,
    session_factory: Any,
    redis_client: Any = None,
    zone_names: ZoneNameLookup | None = None,
) -> Services:
    """Wire repositories and domain services from settings."""
    trips = TripRepository(session_factory)
    roles = UserRoleRepository(session_factory)
    zone_indexer = ZoneIndexer(settings.zone.resolution)
    latest_trip_cache = (
        LatestTripEndCache(redis_client, settings.fraud.latest_trip_cache_ttl_seconds)
        if redis_client is not None
        else None
    )

    rate_limiter = RateLimiter(
        RateLimitRepository(session_factory),
        per_hour=settings.rate_limit.per_hour,
        per_day=settings.rate_limit.per_day,
        retention_hours=settings.rate_limit.retention_hours,
    )
    fraud_guard = FraudGuard(
        trips,
        latest_trip_cache=latest_trip_cache,
        duplicate_window_minutes=settings.fraud.duplicate_window_minutes,
        same_zone_window_minutes=settings.fraud.same_zone_window_minutes,
        time_feasibility_enabled=settings.fraud.time_feasibility_enabled,
    )
    tariff = TariffCalculator(
        base_fare=settings.tariff.base_fare,
        per_km_rate=settings.tariff.per_km_rate,
        min_modifier=settings.tariff.min_modifier,
        max_modifier=settings.tariff.max_modifier,
    )

    pipeline = ValidationPipeline(
        trips=trips,
        roles=roles,
        rate_limiter=rate_limiter,
        fraud_guard=fraud_guard,
        tariff=tariff,
        zone_indexer=zone_indexer,
        region=settings.region,
        similarity=settings.similarity,
        latest_trip_cache=latest_trip_cache,
    )
    analyzer = SimilarityAnalyzer(
        trips,
        zone_indexer,
        settings.region,
        settings.similarity,
        zone_names=zone_names,
    )
    return Services(
        pipeline=pipeline,
        analyzer=analyzer,
        trips=trips,
        roles=roles,
        zone_indexer=zone_indexer,
        zone_names=zone_names,
    )


def main() -> None:
    """Main entry point - initializes and runs the service."""
    from fare_logging import setup_logging

    settings = load_settings()

    setup_logging(
        level=settings.log.level,
        json_output=settings.log.format == "json",
        environment=settings.log.environment,
    )

    if os.getenv("OTEL_ENABLED", "false").lower() == "true":
        init_otel_sdk()

    logger.info("Starting fare validation service...")

    session_factory = init_database(settings.database.url)

    roles = UserRoleRepository(session_factory)
    seeded = roles.ensure_admins(settings.security.bootstrap_admin_ids())
    if seeded:
        logger.info(f"Seeded {seeded} bootstrap admin(s)")

    RateLimiter(
        RateLimitRepository(session_factory),
        retention_hours=settings.rate_limit.retention_hours,
    ).purge_expired()

    redis_client = create_redis_client(settings)
    if redis_client is not None:
        logger.info(f"Latest-trip cache using Redis at {settings.redis.host}:{settings.redis.port}")

    services = build_services(settings, session_factory, redis_client, load_zone_names(settings))
    app = create_app(services, settings)

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level=settings.log.level.lower())


if __name__ == "__main__":
    main()
