import logging

from fastapi import APIRouter, Depends, Request

from api.auth import verify_api_key
from api.dependencies import RoleRepositoryDep, TripRepositoryDep, ZoneIndexerDep
from api.identity import identity_of
from api.models import BackfillRequest, BackfillResponse
from core.exceptions import FareServiceError, ForbiddenError, UnauthenticatedError

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.post("/zones/backfill", response_model=BackfillResponse, response_model_exclude_none=True)
def backfill_zones(
    request: Request,
    body: BackfillRequest,
    trips: TripRepositoryDep,
    roles: RoleRepositoryDep,
    zone_indexer: ZoneIndexerDep,
) -> BackfillResponse:
    """Recompute trip zones at the configured resolution (admin only)."""
    caller = identity_of(request)
    try:
        if not caller.user_id:
            raise UnauthenticatedError("Sign in to run maintenance")
        if not roles.is_admin(caller.user_id):
            raise ForbiddenError("Only admins can backfill zones")
        report = trips.backfill_zones(
            zone_indexer.zone_of,
            resolution=zone_indexer.resolution,
            batch_size=body.batch_size,
            max_batches=body.max_batches,
            force=body.force,
        )
    except FareServiceError as e:
        return BackfillResponse(success=False, error=e.message, code=e.code)

    logger.info(f"Zone backfill requested by {caller.user_id}: {report.total_updated} updated")
    return BackfillResponse(success=True, **report.model_dump())
