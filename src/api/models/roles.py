"""Role lookup and assignment models."""

from api.models.base import CamelModel, OperationResult
from trip import Role


class RoleUpdateRequest(CamelModel):
    role: Role


class RoleResponse(OperationResult):
    user_id: str | None = None
    role: Role | None = None
    is_admin: bool | None = None
