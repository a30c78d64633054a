"""Mapping of lobby errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from lobbyhub.lobby.errors import ErrorKind, LobbyError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Build the standard error envelope."""
    return JSONResponse(status_code=status_code, content={"error": code, "message": message})


def internal_error_response() -> JSONResponse:
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "Internal server error"
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""

    @app.exception_handler(LobbyError)
    async def lobby_error_handler(request: Request, exc: LobbyError) -> JSONResponse:
        if exc.kind == ErrorKind.INTERNAL:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
            return internal_error_response()
        return error_response(STATUS_BY_KIND[exc.kind], exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
        return error_response(status.HTTP_400_BAD_REQUEST, "bad_request", "Invalid request")

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        logger.warning(f"Rate limit exceeded for {request.url.path}: {exc.detail}")
        return error_response(
            status.HTTP_429_TOO_MANY_REQUESTS, "rate_limited", f"Rate limit exceeded: {exc.detail}"
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
        return internal_error_response()

    @app.exception_handler(TimeoutError)
    async def timeout_handler(request: Request, exc: TimeoutError) -> JSONResponse:
        logger.error(f"Operation timed out on {request.method} {request.url.path}")
        return internal_error_response()
