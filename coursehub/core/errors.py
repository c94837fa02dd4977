"""Error taxonomy shared by services and gateways.

Services raise these; the handlers registered by ``register_exception_handlers``
turn them into ``{"message": ...}`` JSON responses. The chat gateway reuses
``AppError.message`` to report failures over the socket instead.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

logger = logging.getLogger("coursehub.errors")


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Please log in"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already exists"


class InvalidTransitionError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Invalid status transition"


class ConcurrentUpdateError(AppError):
    """The record kept changing under a write; the caller may retry."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "The record was changed by another request, please retry"


class PersistenceError(AppError):
    default_message = "Internal server error"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, PersistenceError):
        logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc.message)
        # internals stay in the log
        return JSONResponse(status_code=exc.status_code, content={"message": PersistenceError.default_message})
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def mongo_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": PersistenceError.default_message},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed", "errors": errors},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(PyMongoError, mongo_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
