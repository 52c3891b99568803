"""Mapping of service and storage errors to HTTP responses.

Storage error text is logged, never returned to the client.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from headcount.db.time import utcnow
from headcount.services.counter import UNAVAILABLE_ERRORS
from headcount.services.errors import (
    AggregateDrift,
    DuplicateMember,
    MemberNotFound,
    MissingAggregateRow,
    ReadUnavailable,
)

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the JSON error body shared by every failure response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": HTTPStatus(status_code).phrase,
            "message": message,
            "timestamp": utcnow().isoformat(),
        },
    )


async def _duplicate_member(request: Request, exc: DuplicateMember) -> JSONResponse:
    return error_response(status.HTTP_409_CONFLICT, "Username or email already registered")


async def _member_not_found(request: Request, exc: MemberNotFound) -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, f"Member {exc.member_id} not found")


async def _missing_aggregate_row(request: Request, exc: MissingAggregateRow) -> JSONResponse:
    logger.critical("Mutation aborted on %s: %s", request.url.path, exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "User count storage is inconsistent"
    )


async def _aggregate_drift(request: Request, exc: AggregateDrift) -> JSONResponse:
    logger.error("Mutation aborted on %s: %s", request.url.path, exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "User count storage is inconsistent"
    )


async def _unavailable(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Database unavailable on %s: %s", request.url.path, exc)
    return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Database connection failed")


async def _storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s: %s", request.url.path, exc, exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred"
    )


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred"
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error handlers to ``app``."""
    app.add_exception_handler(DuplicateMember, _duplicate_member)
    app.add_exception_handler(MemberNotFound, _member_not_found)
    app.add_exception_handler(MissingAggregateRow, _missing_aggregate_row)
    app.add_exception_handler(AggregateDrift, _aggregate_drift)
    app.add_exception_handler(ReadUnavailable, _unavailable)
    for exc_class in UNAVAILABLE_ERRORS:
        app.add_exception_handler(exc_class, _unavailable)
    app.add_exception_handler(SQLAlchemyError, _storage_error)
    app.add_exception_handler(Exception, _unhandled)
