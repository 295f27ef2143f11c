"""
Error handlers - Map domain and infrastructure errors to HTTP responses.

Each domain exception maps to exactly one status code. Response bodies use
the same {"detail": ...} shape as FastAPI's HTTPException.

    ValidationError -> 422
    NotFound        -> 404
    Forbidden       -> 403
    InvalidState    -> 400
    Conflict        -> 409
    psycopg OperationalError (pool timeout, statement timeout,
    lost connection) -> 503, safe for the caller to retry
"""

import logging

import psycopg
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from walkbook.domain.exceptions import (
    Conflict,
    Forbidden,
    InvalidState,
    NotFound,
    ValidationError,
    WalkbookError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[WalkbookError], int] = {
    ValidationError: 422,
    NotFound: 404,
    Forbidden: 403,
    InvalidState: 400,
    Conflict: 409,
}


def status_for(exc: WalkbookError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_400_BAD_REQUEST


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(WalkbookError)
    async def walkbook_error_handler(request: Request, exc: WalkbookError) -> JSONResponse:
        status_code = status_for(exc)
        logger.info(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
        )
        return JSONResponse(status_code=status_code, content={"detail": exc.message})

    @app.exception_handler(psycopg.OperationalError)
    async def storage_unavailable_handler(
        request: Request, exc: psycopg.OperationalError
    ) -> JSONResponse:
        logger.warning("Storage unavailable on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage temporarily unavailable, retry later"},
            headers={"Retry-After": "1"},
        )
