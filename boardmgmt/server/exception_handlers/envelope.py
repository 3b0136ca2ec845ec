"""Error envelope shared by all exception handlers."""

import uuid
from typing import Any, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from boardmgmt.core.database.base import utc_now
from boardmgmt.core.models.io.common import ErrorBody, ErrorResponse


def trace_id_for(request: Request) -> str:
    """Request id assigned by the logging middleware, or a fresh one."""
    return getattr(request.state, "request_id", None) or uuid.uuid4().hex


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[Any] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorBody(code=code, message=message, details=details),
        trace_id=trace_id_for(request),
        timestamp=utc_now(),
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)
