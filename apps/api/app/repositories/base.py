from __future__ import annotations

import functools
from typing import Callable, ParamSpec, TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.error_codes import ErrorCode
from app.core.exceptions import StorageError

logger = structlog.get_logger()

P = ParamSpec("P")
R = TypeVar("R")


def _storage_error(db: Session, operation: str, exc: SQLAlchemyError) -> StorageError:
    logger.exception("storage_error", operation=operation, error_type=type(exc).__name__)
    try:
        db.rollback()
    except SQLAlchemyError:
        logger.exception("storage_rollback_failed", operation=operation)
    return StorageError(ErrorCode.STORAGE_UNAVAILABLE.value, "storage unavailable")


def storage_errors(method: Callable[P, R]) -> Callable[P, R]:
    """Turn driver/ORM failures inside a repository method into StorageError."""

    @functools.wraps(method)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        repo = args[0]
        try:
            return method(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise _storage_error(repo.db, method.__qualname__, exc) from exc

    return wrapper


class Repository:
    def __init__(self, db: Session) -> None:
        self.db = db


def commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        raise _storage_error(db, "commit", exc) from exc
