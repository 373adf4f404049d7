"""
Exception handlers for FastAPI.

Every domain error renders as {"error", "message", "details"}.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    AggregationError,
    CampaignServiceError,
    ConfigurationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (ValidationError, 400),
    (ConflictError, 409),
    (AggregationError, 503),
    (DatabaseError, 503),
    (ConfigurationError, 500),
)


def status_code_for(exc: CampaignServiceError) -> int:
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return status_code
    return 500


async def campaign_service_exception_handler(
    request: Request, exc: CampaignServiceError
) -> JSONResponse:
    """Handler for every domain exception."""
    status_code = status_code_for(exc)
    error_type = exc.__class__.__name__

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{error_type}: {exc.message}",
        extra={"error_type": error_type, "details": exc.details, "path": request.url.path},
    )

    return JSONResponse(
        status_code=status_code,
        content={"error": error_type, "message": exc.message, "details": exc.details},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled exceptions."""
    logger.exception(f"Unhandled error: {exc}", extra={"path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "Internal server error",
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Registers the handlers on the app.

    Usage:
        app = FastAPI()
        register_exception_handlers(app)
    """
    app.add_exception_handler(CampaignServiceError, campaign_service_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
