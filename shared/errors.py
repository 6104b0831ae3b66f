"""
Request outcome taxonomy shared by every service.

Services return a ``Failure`` for expected rejections (bad input, duplicate
email, wrong password, unknown or foreign resource) instead of raising.
Routers turn it into an HTTP response with ``raise_for_failure``. Store
errors that escape a service are caught by ``store_failure_handler`` so the
caller only ever sees a generic 500.
"""
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar, Union

import structlog
from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ErrorKind(str, Enum):
    MALFORMED_INPUT = "malformed_input"
    CONFLICT = "conflict"
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    STORE_FAILURE = "store_failure"


STATUS_BY_KIND = {
    ErrorKind.MALFORMED_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STORE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str


Result = Union[T, Failure]


def to_http_exception(failure: Failure) -> HTTPException:
    headers = None
    if failure.kind is ErrorKind.UNAUTHENTICATED:
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(
        status_code=STATUS_BY_KIND[failure.kind],
        detail=failure.message,
        headers=headers,
    )


def raise_for_failure(result: Result[T]) -> T:
    if isinstance(result, Failure):
        raise to_http_exception(result)
    return result


async def store_failure_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(
        "store_failure",
        method=request.method,
        path=request.url.path,
        error=exc.__class__.__name__,
    )
    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.STORE_FAILURE],
        content={"detail": "Internal server error"},
    )


async def validation_failure_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Body/query validation is malformed input, reported as 400 rather than 422.
    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.MALFORMED_INPUT],
        content={"detail": jsonable_encoder(exc.errors())},
    )
