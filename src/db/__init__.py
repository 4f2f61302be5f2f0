"""Database persistence module."""

from .database import init_database
from .schema import RateLimitCounter, ServiceMetadata, Trip, UserRole
from .transaction import transaction, translate_store_errors

__all__ = [
    "init_database",
    "RateLimitCounter",
    "ServiceMetadata",
    "Trip",
    "UserRole",
    "transaction",
    "translate_store_errors",
]
