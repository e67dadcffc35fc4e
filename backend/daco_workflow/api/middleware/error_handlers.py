"""
Error Handlers

Centralized exception handlers for the FastAPI application.
"""
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pymongo.errors import PyMongoError

from ...domain.errors import DomainError, PersistenceError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


def _error_response(exc: DomainError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=jsonable_encoder(exc.to_dict()),
        headers={"X-Correlation-Id": get_correlation_id() or ""}
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """
    Handle domain-specific errors (business logic errors).

    Expected failures such as invalid transitions, incomplete applications,
    locked sections or unknown applications.
    """
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"Domain error: {exc.error_code} - {exc.message}",
        extra={"error_code": exc.error_code}
    )
    return _error_response(exc)


async def persistence_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    """Storage failures outside the workflow (reads, content edits) surface as 503"""
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return _error_response(PersistenceError("Storage is temporarily unavailable"))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors.

    These occur when request data doesn't match expected schema.
    """
    logger.warning(
        f"Validation error: {exc.errors()}, "
        f"path={request.url.path}, "
        f"method={request.method}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"errors": jsonable_encoder(exc.errors())}
            }
        },
        headers={"X-Correlation-Id": get_correlation_id() or ""}
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Logs full stack trace for debugging.
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": {"hint": "Check server logs for details"}
            }
        },
        headers={"X-Correlation-Id": get_correlation_id() or ""}
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(PyMongoError, persistence_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
