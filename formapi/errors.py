import logging
from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """HTTPException carrying an external-safe message and an internal detail.

    ``message`` and ``errors`` are sent to the client; ``internal`` is only
    logged.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        errors: Optional[list] = None,
        internal: Optional[str] = None,
        headers: Optional[dict] = None,
    ):
        super().__init__(status_code=self.status_code, detail=message, headers=headers)
        self.message = message
        self.errors = errors or []
        self.internal = internal


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT


class InternalError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(status_code: int, message: str, errors: Optional[list] = None) -> dict:
    return {"status": status_code, "message": message, "errors": errors or []}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    errors: list[Any] = []
    if isinstance(exc, ApiError):
        errors = exc.errors
        if exc.internal:
            log = logger.error if exc.status_code >= 500 else logger.debug
            log(f"{request.method} {request.url.path}: {exc.internal}")
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.status_code, str(exc.detail), errors)),
        headers=exc.headers,
    )


def validation_message(errors: list) -> str:
    """The first message raised by one of our validators, verbatim."""
    for error in errors:
        if error.get("type") == "value_error" and "error" in error.get("ctx", {}):
            return str(error["ctx"]["error"])
    return "Invalid request data"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.debug(f"Validation failed for {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            error_body(status.HTTP_400_BAD_REQUEST, validation_message(errors), errors)
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
    )
