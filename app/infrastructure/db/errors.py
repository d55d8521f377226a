import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError

from app.domain.errors import PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def persistence_errors(action: str) -> Iterator[None]:
    """Translate driver errors into PersistenceError, keeping the original as cause."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(
            "Database operation failed",
            extra={"action": action, "error_type": exc.__class__.__name__, "error": str(exc)},
        )
        raise PersistenceError(f"Failed to {action}") from exc


def to_db_datetime(value: datetime | None) -> datetime | None:
    """Datetimes are stored as naive UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def from_db_datetime(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
