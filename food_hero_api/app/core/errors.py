"""
Domain errors and their HTTP rendering.

Services raise the exceptions defined here; they never build HTTP
responses themselves.  ``register_exception_handlers`` installs
FastAPI handlers that turn each error into a JSON body of the form
``{"kind": "<machine readable kind>", "detail": "<message>"}`` with a
fixed status code per kind.
"""

import logging
import sqlite3

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


class FoodHeroError(Exception):
    """Base class for every error the domain reports to callers."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FoodHeroError):
    """Malformed or missing input."""

    kind = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(FoodHeroError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(FoodHeroError):
    """The actor has no rights over the entity (wrong owner or role)."""

    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(FoodHeroError):
    """The transition was already applied, possibly by a concurrent request."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class PreconditionError(FoodHeroError):
    """The transition was attempted out of order (deliver before receive)."""

    kind = "precondition_failed"
    status_code = status.HTTP_412_PRECONDITION_FAILED


def error_body(kind: str, detail) -> dict:
    return {"kind": kind, "detail": detail}


async def _domain_error_handler(request: Request, exc: FoodHeroError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.kind, exc.message))


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(ValidationError.kind, jsonable_encoder(exc.errors())),
    )


async def _storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal_error", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain, validation and internal error handlers to ``app``."""
    app.add_exception_handler(FoodHeroError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(sqlite3.Error, _storage_error_handler)
    app.add_exception_handler(Exception, _storage_error_handler)
