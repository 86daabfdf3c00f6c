"""Error types shared by the vocabox services."""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabox.monitoring import db_errors, db_operations

logger = logging.getLogger(__name__)


class VocaboxError(Exception):
    """Base class for vocabox errors."""


class NotFoundError(VocaboxError):
    """A student, word or progress record does not exist."""


class ValidationError(VocaboxError, ValueError):
    """Input that cannot be accepted (malformed rows, blank answers, bad fields)."""


class PersistenceError(VocaboxError):
    """The store rejected a read or write."""


@contextmanager
def persistence_guard(db: Session, operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures raised inside the block into PersistenceError.

    The session is rolled back so it can be reused by the caller.
    """
    db_operations.labels(operation_type=operation).inc()
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        db_errors.labels(error_type=type(e).__name__).inc()
        logger.error("Database error during %s: %s", operation, e)
        raise PersistenceError(f"{operation} failed: {e}") from e
