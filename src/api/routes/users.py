import logging

from fastapi import APIRouter, Depends, Request

from api.auth import verify_api_key
from api.dependencies import RoleRepositoryDep
from api.identity import identity_of
from api.models import RoleResponse, RoleUpdateRequest
from core.exceptions import FareServiceError, ForbiddenError, UnauthenticatedError
from trip import Role

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_api_key)])


def _failure(error: FareServiceError) -> RoleResponse:
    return RoleResponse(success=False, error=error.message, code=error.code)


@router.get("/{user_id}/role", response_model=RoleResponse, response_model_exclude_none=True)
def get_user_role(request: Request, user_id: str, roles: RoleRepositoryDep) -> RoleResponse:
    """Role of a user. Users may read their own role; admins may read anyone's."""
    caller = identity_of(request)
    try:
        if not caller.user_id:
            raise UnauthenticatedError("Sign in to read roles")
        if caller.user_id != user_id and not roles.is_admin(caller.user_id):
            raise ForbiddenError("Only admins can read other users' roles")
        role = roles.get_role(user_id)
    except FareServiceError as e:
        return _failure(e)

    return RoleResponse(success=True, user_id=user_id, role=role, is_admin=role == Role.ADMIN)


@router.put("/{user_id}/role", response_model=RoleResponse, response_model_exclude_none=True)
def set_user_role(
    request: Request,
    user_id: str,
    body: RoleUpdateRequest,
    roles: RoleRepositoryDep,
) -> RoleResponse:
    """Change a user's role. Only an existing admin may do this."""
    caller = identity_of(request)
    try:
        if not caller.user_id:
            raise UnauthenticatedError("Sign in to change roles")
        roles.set_role(caller.user_id, user_id, body.role)
    except FareServiceError as e:
        logger.info(f"Role change for {user_id} rejected ({e.code}): {e.message}")
        return _failure(e)

    return RoleResponse(
        success=True, user_id=user_id, role=body.role, is_admin=body.role == Role.ADMIN
    )
