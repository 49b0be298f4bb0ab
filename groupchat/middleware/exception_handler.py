"""Exception handlers for structured error responses."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import ChatException, ErrorCode

logger = logging.getLogger(__name__)


async def chat_exception_handler(request: Request, exc: ChatException) -> JSONResponse:
    """Log the error and render it as ``{"error", "message", "details"}``."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"ChatException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected is a 500 with no internals in the body."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": ErrorCode.INTERNAL_ERROR.value,
            "message": "Internal server error",
            "details": {},
        },
    )
