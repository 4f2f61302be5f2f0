"""Pydantic models for API requests and responses."""

from api.models.admin import BackfillRequest, BackfillResponse
from api.models.roles import RoleResponse, RoleUpdateRequest
from api.models.zones import ZoneLookupResponse

__all__ = [
    "BackfillRequest",
    "BackfillResponse",
    "RoleResponse",
    "RoleUpdateRequest",
    "ZoneLookupResponse",
]
