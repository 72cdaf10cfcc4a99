"""Map domain errors to HTTP responses.

Every error body has the shape {"message": "..."}. Upstream and store
failures are logged with their detail and answered with a generic message.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from domain.model.errors import (
    AuthenticationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    UpstreamProviderError,
    UpstreamServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (UpstreamProviderError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (UpstreamServiceError, status.HTTP_502_BAD_GATEWAY),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]

GENERIC_MESSAGES = {
    UpstreamProviderError: "Authentication failed. Please try again.",
    PersistenceError: "An internal error occurred. Please try again.",
}


def status_for(error: DomainError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def public_message(error: DomainError) -> str:
    for error_type, message in GENERIC_MESSAGES.items():
        if isinstance(error, error_type):
            return message
    return error.message or "Request failed."


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error_type": type(exc).__name__, "error": str(exc)},
            exc_info=exc.__cause__ is not None,
        )
    return JSONResponse(status_code=status_code, content={"message": public_message(exc)})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    fields = [".".join(str(p) for p in e.get("loc", ())[1:]) for e in errors]
    logger.debug("Request validation failed", extra={"path": request.url.path, "fields": fields})
    field_list = ", ".join(f for f in fields if f) or "request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": f"Invalid value for: {field_list}."},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
