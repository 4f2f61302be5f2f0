from api.models.base import OperationResult


class ZoneLookupResponse(OperationResult):
    zone_id: str | None = None
    name: str | None = None
    resolution: int | None = None
