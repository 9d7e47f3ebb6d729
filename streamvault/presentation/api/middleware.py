"""
HTTP middleware and exception handlers.

Upload errors are turned into JSON bodies with a status code matching the
failure; anything else becomes a 500 response carrying the request id.
"""

import logging
import uuid
from typing import Awaitable, Callable, Dict, Type

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ...core.exceptions import (
    BackendRejected, BackendUnavailable, IncompleteUpload, InvalidSessionState, MalformedRequest,
    PartOrderError, PartTooSmall, SessionExpired, StreamAborted, UploadAborted, UploadError
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

ERROR_STATUS: Dict[Type[UploadError], int] = {
    BackendUnavailable: 502,
    BackendRejected: 502,
    SessionExpired: 502,
    PartTooSmall: 500,
    IncompleteUpload: 500,
    InvalidSessionState: 500,
    PartOrderError: 500,
    UploadAborted: 500,
    StreamAborted: 400,
    MalformedRequest: 400,
}


def status_for_error(error: UploadError) -> int:
    """Get the HTTP status code reported for an upload error."""
    for error_type in type(error).__mro__:
        if error_type in ERROR_STATUS:
            return ERROR_STATUS[error_type]
    return 500


async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    """Render an ``UploadError`` as a JSON response."""
    status_code = status_for_error(exc)
    logger.warning(
        f"{request.method} {request.url.path} failed with {status_code} "
        f"[{exc.error_code}]: {exc.message}"
    )

    content = exc.to_dict()
    content["request_id"] = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=status_code, content=content)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware assigning request ids and handling unexpected errors."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(f"Unhandled error in {request.method} {request.url}: {e}")

            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "message": str(e) if request.app.debug else "An unexpected error occurred",
                    "request_id": request_id
                },
                headers={REQUEST_ID_HEADER: request_id}
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
