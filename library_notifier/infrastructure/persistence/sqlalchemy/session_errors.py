import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ....exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(session: Session, operation: str):
    """Roll back and re-raise driver/ORM failures as StoreUnavailable."""
    try:
        yield
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Store failure during {operation}: {e}")
        raise StoreUnavailable(f"{operation} failed: {e}") from e
