from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError, HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ceo_platform.utils.logger import logger
from ceo_platform.utils.exceptions import BaseAPIException


def _failure(status_code: int, code: str, message: str, error: dict | None = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "failure",
            "status_code": status_code,
            "code": code,
            "message": message,
            "error": error or {},
        },
        headers=headers,
    )


async def base_api_exception_handler(request: Request, exc: BaseAPIException):
    """Handle custom API exceptions and log them."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{exc.__class__.__name__}: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return _failure(exc.status_code, exc.code, exc.detail, headers=exc.headers)


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    """Handle validation errors and log them."""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"errors": errors},
    )
    return _failure(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Validation error",
        error={"details": errors},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTPException and log them."""
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )
    code = {
        status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
        status.HTTP_403_FORBIDDEN: "FORBIDDEN",
        status.HTTP_404_NOT_FOUND: "NOT_FOUND",
        status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    }.get(exc.status_code, "HTTP_ERROR")
    return _failure(exc.status_code, code, str(exc.detail), headers=exc.headers)


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """
    Database/transport failures. Never retried.

    Stale versions and constraint violations are the caller's conflicts (409);
    everything else means the database could not serve the request (503).
    """
    if isinstance(exc, StaleDataError):
        logger.warning(
            f"Stale write on {request.method} {request.url.path}: {exc}",
        )
        return _failure(
            status.HTTP_409_CONFLICT,
            "CONFLICT",
            "The record was modified concurrently. Reload and try again.",
        )

    if isinstance(exc, IntegrityError):
        logger.warning(
            f"Constraint violation on {request.method} {request.url.path}: {exc.orig}",
        )
        return _failure(
            status.HTTP_409_CONFLICT,
            "CONFLICT",
            "The change conflicts with existing data.",
        )

    logger.error(
        f"Database error on {request.method} {request.url.path}: {exc.__class__.__name__}",
        exc_info=exc,
    )
    return _failure(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "TRANSPORT_ERROR",
        "The database is unavailable. Please try again.",
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions and log them."""
    logger.exception(
        f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}",
        exc_info=exc,
    )
    return _failure(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "SERVER_ERROR",
        "An unexpected error occurred. Please try again.",
    )
