from fastapi import HTTPException

from app.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    StorageError,
    ValidationError,
)


def http_error_from_service(err: ServiceError) -> HTTPException:
    if isinstance(err, NotFoundError):
        status = 404
    elif isinstance(err, PermissionDeniedError):
        status = 403
    elif isinstance(err, (ConflictError, InvalidStateError)):
        status = 409
    elif isinstance(err, ValidationError):
        status = 422
    elif isinstance(err, StorageError):
        # Already logged with detail by the repository layer
        status = 503
    else:
        status = 500

    return HTTPException(
        status_code=status,
        detail={"code": err.code, "message": err.message},
    )
