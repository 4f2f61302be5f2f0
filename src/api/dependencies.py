"""FastAPI dependency injection providers."""

from typing import Annotated, Any

from fastapi import Depends, Request


def get_pipeline(request: Request) -> Any:
    """Retrieve ValidationPipeline from app state."""
    return request.app.state.pipeline


def get_analyzer(request: Request) -> Any:
    """Retrieve SimilarityAnalyzer from app state."""
    return request.app.state.analyzer


def get_trip_repository(request: Request) -> Any:
    return request.app.state.trips


def get_role_repository(request: Request) -> Any:
    return request.app.state.roles


def get_zone_indexer(request: Request) -> Any:
    return request.app.state.zone_indexer


def get_zone_names(request: Request) -> Any:
    return request.app.state.zone_names


def get_settings_dep(request: Request) -> Any:
    return request.app.state.settings


PipelineDep = Annotated[Any, Depends(get_pipeline)]
AnalyzerDep = Annotated[Any, Depends(get_analyzer)]
TripRepositoryDep = Annotated[Any, Depends(get_trip_repository)]
RoleRepositoryDep = Annotated[Any, Depends(get_role_repository)]
ZoneIndexerDep = Annotated[Any, Depends(get_zone_indexer)]
ZoneNamesDep = Annotated[Any, Depends(get_zone_names)]
SettingsDep = Annotated[Any, Depends(get_settings_dep)]
