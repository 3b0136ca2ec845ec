"""
Handlers for expected failures.

Domain exceptions carry their own status and code. Request validation, HTTP and
SQLAlchemy persistence errors are translated onto the same envelope.
"""

from collections import defaultdict
from http import HTTPStatus
from typing import Dict, List

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from boardmgmt.core.exceptions import BoardError, ConcurrencyConflictError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger

from .envelope import error_response

logger = get_logger(__name__)


async def board_error_handler(request: Request, exc: BoardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.status_code} {exc.code} in {request.method} {request.url.path}: {exc.message}")
    return error_response(request, exc.status_code, exc.code, exc.message, exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Group FastAPI validation errors by dotted field path."""
    fields: Dict[str, List[str]] = defaultdict(list)
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        fields[".".join(location) or "request"].append(error.get("msg", "Invalid value"))
    logger.info(f"Request validation failed for {request.method} {request.url.path}: {dict(fields)}")
    return error_response(
        request,
        ValidationFailedError.status_code,
        ValidationFailedError.code,
        ValidationFailedError.default_message,
        dict(fields),
    )


def _code_for_status(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase.lower().replace(" ", "_").replace("-", "_")
    except ValueError:
        return f"http_{status_code}"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else _code_for_status(exc.status_code).replace("_", " ")
    return error_response(
        request,
        exc.status_code,
        _code_for_status(exc.status_code),
        message,
        None if isinstance(exc.detail, str) else exc.detail,
        headers=getattr(exc, "headers", None),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Integrity error in {request.method} {request.url.path}: {exc.orig}")
    return error_response(
        request, 409, "db_update_error", "The change conflicts with existing data and could not be saved."
    )


async def stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
    logger.info(f"Stale data in {request.method} {request.url.path}: {exc}")
    return error_response(
        request,
        ConcurrencyConflictError.status_code,
        ConcurrencyConflictError.code,
        ConcurrencyConflictError.default_message,
    )
