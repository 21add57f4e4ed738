"""Global exception handlers that map domain exceptions to HTTP responses."""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from commission_engine.errors import (
    AGGREGATION_TIMEOUT,
    DUPLICATE_RESOURCE,
    NOT_FOUND,
    PERIOD_LOCKED,
    UPSTREAM_ERROR,
    VALIDATION_ERROR,
    AggregationTimeoutError,
    DomainValidationError,
    DuplicateResourceError,
    NotFoundError,
    PeriodLockedError,
    UpstreamServiceError,
)
from commission_engine.schemas.error import ErrorResponse


def _error_response(status_code: int, detail: str, code: str) -> JSONResponse:
    """Return a standardized error response with detail and machine-readable code."""
    body = ErrorResponse(detail=detail, code=code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def domain_validation_error_handler(
    _request: Request, exc: DomainValidationError
) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        str(exc),
        VALIDATION_ERROR,
    )


def duplicate_resource_error_handler(
    _request: Request, exc: DuplicateResourceError
) -> JSONResponse:
    return _error_response(
        status.HTTP_409_CONFLICT,
        str(exc),
        DUPLICATE_RESOURCE,
    )


def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(
        status.HTTP_404_NOT_FOUND,
        str(exc),
        NOT_FOUND,
    )


def period_locked_error_handler(_request: Request, exc: PeriodLockedError) -> JSONResponse:
    return _error_response(
        status.HTTP_423_LOCKED,
        str(exc),
        PERIOD_LOCKED,
    )


def aggregation_timeout_error_handler(
    _request: Request, exc: AggregationTimeoutError
) -> JSONResponse:
    return _error_response(
        status.HTTP_504_GATEWAY_TIMEOUT,
        str(exc),
        AGGREGATION_TIMEOUT,
    )


def upstream_service_error_handler(
    _request: Request, exc: UpstreamServiceError
) -> JSONResponse:
    return _error_response(
        status.HTTP_502_BAD_GATEWAY,
        str(exc),
        UPSTREAM_ERROR,
    )


def register_exception_handlers(app):
    """Register domain exception handlers on the FastAPI app."""
    app.add_exception_handler(DomainValidationError, domain_validation_error_handler)
    app.add_exception_handler(DuplicateResourceError, duplicate_resource_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(PeriodLockedError, period_locked_error_handler)
    app.add_exception_handler(AggregationTimeoutError, aggregation_timeout_error_handler)
    app.add_exception_handler(UpstreamServiceError, upstream_service_error_handler)
