"""User role lookups and admin-only role changes."""

import logging
from collections.abc import Callable, Iterable

from sqlalchemy.orm import Session

from core.exceptions import ForbiddenError
from trip import Role

from ..schema import UserRole
from ..transaction import transaction, translate_store_errors

logger = logging.getLogger(__name__)


class UserRoleRepository:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_role(self, user_id: str) -> Role:
        """Role of the user; users without a row are plain users."""
        with translate_store_errors("get_role"):
            with self.session_factory() as session:
                row = session.get(UserRole, user_id)
                return Role(row.role) if row else Role.USER

    def is_admin(self, user_id: str) -> bool:
        return self.get_role(user_id) == Role.ADMIN

    def set_role(self, actor_id: str, target_user_id: str, role: Role) -> None:
        """Change a user's role. Only an existing admin may do this."""
        if not self.is_admin(actor_id):
            raise ForbiddenError(
                "Only admins can change user roles",
                details={"actor_id": actor_id, "target_user_id": target_user_id},
            )

        with translate_store_errors("set_role"):
            with self.session_factory() as session, transaction(session):
                row = session.get(UserRole, target_user_id)
                if row is None:
                    session.add(
                        UserRole(user_id=target_user_id, role=role.value, updated_by=actor_id)
                    )
                else:
                    row.role = role.value
                    row.updated_by = actor_id

        logger.info(f"Role of {target_user_id} set to {role.value} by {actor_id}")

    def ensure_admins(self, user_ids: Iterable[str]) -> int:
        """Seed admin rows for bootstrap ids. Returns the number created or promoted."""
        changed = 0
        with translate_store_errors("ensure_admins"):
            with self.session_factory() as session, transaction(session):
                for user_id in user_ids:
                    row = session.get(UserRole, user_id)
                    if row is None:
                        session.add(
                            UserRole(user_id=user_id, role=Role.ADMIN.value, updated_by="bootstrap")
                        )
                        changed += 1
                    elif row.role != Role.ADMIN.value:
                        row.role = Role.ADMIN.value
                        row.updated_by = "bootstrap"
                        changed += 1
        return changed
