"""Repository layer for database CRUD operations."""

from .rate_limit_repository import CounterState, RateLimitRepository
from .trip_repository import BackfillReport, TripRepository
from .user_role_repository import UserRoleRepository

__all__ = [
    "BackfillReport",
    "CounterState",
    "RateLimitRepository",
    "TripRepository",
    "UserRoleRepository",
]
