"""HTTP error types raised by the scheduling API.

Each error is an ``HTTPException`` so route handlers and services can raise
them directly and FastAPI renders them as ``{"detail": "..."}``.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from mindcare.core import config

logger = logging.getLogger(__name__)

SERVER_ERROR_DETAIL = 'Server Error'
DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Please try again later.'


class InvalidRequest(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Conflict(HTTPException):
    # Reported as 400 to stay compatible with existing clients.
    def __init__(self, detail: str = 'This time slot is already booked') -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class InternalError(HTTPException):
    def __init__(self, detail: str = SERVER_ERROR_DETAIL) -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class ServiceUnavailable(HTTPException):
    def __init__(self, detail: str = DATABASE_UNAVAILABLE_DETAIL) -> None:
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


def describe_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error.get('loc', ()) if part != 'body')
        message = error.get('msg', 'Invalid value')
        messages.append(f'{location}: {message}' if location else message)
    return '; '.join(messages) or 'Invalid request'


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning('Validation error on %s: %s', request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'detail': describe_validation_errors(exc)},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error('Unhandled error on %s: %s', request.url.path, exc, exc_info=exc)
    content = {'detail': SERVER_ERROR_DETAIL}
    if config.is_development():
        content['error'] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def database_error(exc: SQLAlchemyError) -> HTTPException:
    """Map a database failure to the error returned to the client, logging the cause."""
    logger.error('Database error: %s', exc, exc_info=exc)
    if isinstance(exc, OperationalError):
        return ServiceUnavailable()
    return InternalError()
