"""Application error taxonomy mapped to HTTP status codes."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import jwt
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error carrying a client-safe message and an HTTP status."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class BadRequestError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class InternalError(AppError):
    status_code = 500


async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError as {"message": ...}; no internal detail is exposed."""
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@contextmanager
def server_error(message: str) -> Iterator[None]:
    """Map store, hashing and signing failures to a generic 500 with message."""
    try:
        yield
    except (SQLAlchemyError, jwt.PyJWTError, ValueError) as e:
        logger.exception("Request failed: %s", type(e).__name__)
        raise InternalError(message) from e
