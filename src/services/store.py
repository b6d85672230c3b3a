"""Shared helpers for services that talk to the relational store."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.services.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


@contextmanager
def store_guard(db: Session, operation: str) -> Iterator[None]:
    """Roll back and surface database failures as ``StoreUnavailable``.

    Nothing is retried here; callers decide whether an operation is safe to
    repeat.
    """
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Database error during {operation}")
        raise StoreUnavailable() from e
