"""FastAPI application factory for the fare validation service."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from analysis import SimilarityAnalyzer
from api.middleware.correlation import CorrelationIdMiddleware
from api.rate_limit import configure_analyze_limit, limiter, rate_limit_exceeded_handler
from api.routes import admin, trips, users, zones
from db.repositories import TripRepository, UserRoleRepository
from geo import ZoneIndexer
from geo.zone_names import ZoneNameLookup
from settings import Settings
from validation import ValidationPipeline

logger = logging.getLogger(__name__)


@dataclass
class Services:
    pipeline: ValidationPipeline
    analyzer: SimilarityAnalyzer
    trips: TripRepository
    roles: UserRoleRepository
    zone_indexer: ZoneIndexer
    zone_names: ZoneNameLookup | None = None


def create_app(services: Services, settings: Settings) -> FastAPI:
    """Create FastAPI application with injected dependencies.

    Args:
        services: Fully wired domain services (see main.build_services)
        settings: Validated settings; the API key and CORS origins come from here
    """
    app = FastAPI(
        title="Fare Validation Service",
        version="1.0.0",
        description="Crowdsourced taxi fare submission and similar-trip analysis",
    )

    app.state.limiter = limiter
    configure_analyze_limit(settings.api.analyze_rate_limit)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Set dependencies immediately (not in lifespan) so they're available for testing
    app.state.settings = settings
    app.state.pipeline = services.pipeline
    app.state.analyzer = services.analyzer
    app.state.trips = services.trips
    app.state.roles = services.roles
    app.state.zone_indexer = services.zone_indexer
    app.state.zone_names = services.zone_names

    origins = [o for o in settings.cors.origins.split(",") if o]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(trips.router, prefix="/trips", tags=["trips"])
    app.include_router(users.router, prefix="/users", tags=["users"])
    app.include_router(admin.router, prefix="/admin", tags=["admin"])
    app.include_router(zones.router, prefix="/zones", tags=["zones"])

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Health check endpoint for monitoring (unauthenticated for infrastructure)."""
        return {"status": "healthy"}

    return app
