"""
Error Handlers

Render DomainError subclasses, request validation failures and unexpected
exceptions as ``{"error": {"code", "message", "details"}}``.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ...domain.errors import DomainError, EngineError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


def _correlation_headers() -> dict:
    return {"X-Correlation-Id": get_correlation_id() or ""}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """
    Handle domain errors.

    Engine errors (a cycle that could not load rules or candidates) are
    logged as errors; the rest are expected client-facing failures.
    """
    log = logger.error if isinstance(exc, EngineError) else logger.warning
    log(
        f"Domain error: {exc.error_code} - {exc.message}",
        extra={"error_type": exc.error_code, "error": exc.details}
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=jsonable_encoder(exc.to_dict()),
        headers=_correlation_headers()
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors"""
    logger.warning(
        f"Validation error: path={request.url.path}, method={request.method}",
        extra={"error": exc.errors()}
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
        headers=_correlation_headers()
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors; full stack trace goes to the error log"""
    logger.error(f"Unexpected error: {exc}", extra={"error_type": type(exc).__name__}, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": {"hint": "Check server logs for details"}
            }
        },
        headers=_correlation_headers()
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
