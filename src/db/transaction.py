"""Commit/rollback boundaries and store-error translation for repositories."""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import StoreUnavailableError


@contextmanager
def transaction(session: Session) -> Generator[Session]:
    """Commit when the block completes, roll back if it raises.

    Example:
        with session_factory() as session, transaction(session):
            session.add(counter_row)
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


@contextmanager
def translate_store_errors(operation: str) -> Generator[None]:
    """Re-raise SQLAlchemy failures as StoreUnavailableError.

    Callers above the repository layer only ever see the service's own
    exception hierarchy.
    """
    try:
        yield
    except SQLAlchemyError as e:
        raise StoreUnavailableError(
            f"Trip store unavailable during {operation}",
            details={"operation": operation, "error": str(e)},
        ) from e
