from fastapi import APIRouter, Depends, Query

from api.auth import verify_api_key
from api.dependencies import SettingsDep, ZoneIndexerDep, ZoneNamesDep
from api.models import ZoneLookupResponse

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("/lookup", response_model=ZoneLookupResponse, response_model_exclude_none=True)
def lookup_zone(
    zone_indexer: ZoneIndexerDep,
    zone_names: ZoneNamesDep,
    settings: SettingsDep,
    lat: float = Query(...),
    lng: float = Query(...),
) -> ZoneLookupResponse:
    """Hex zone id and display name for a coordinate."""
    if not settings.region.contains(lat, lng):
        return ZoneLookupResponse(
            success=False,
            error="Location is outside the service region",
            code="invalid_parameters",
        )

    zone_id = zone_indexer.zone_of(lat, lng)
    name = zone_names.name_at(lat, lng) if zone_names is not None else None
    return ZoneLookupResponse(
        success=True, zone_id=zone_id, name=name, resolution=zone_indexer.resolution
    )
