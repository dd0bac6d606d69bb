"""
FastAPI exception handlers.

Typed errors become ``{"error": ..., "requestId": ...}`` with the error's
status code. Anything else becomes a generic 500 without internal detail.
Context is logged server side only.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gtd_auth.core.logging.logger import get_logger
from .base import BaseError, ValidationError

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def get_request_id(request: Request) -> str:
    """Return the correlation id assigned by the request id middleware."""
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", "")


async def base_error_handler(request: Request, exc: BaseError) -> JSONResponse:
    request_id = get_request_id(request)
    log_fields = {
        "request_id": request_id,
        "path": request.url.path,
        "status_code": exc.status_code,
    }
    if exc.status_code >= 500:
        logger.log_error(exc, "Request failed with a server error", **log_fields)
        body: Dict[str, Any] = {"error": INTERNAL_ERROR_MESSAGE, "requestId": request_id}
    else:
        logger.warning(
            exc.message,
            error_type=type(exc).__name__,
            context=exc.context,
            **log_fields,
        )
        body = {"error": exc.message, "requestId": request_id}
        if isinstance(exc, ValidationError) and "details" in exc.context:
            body["details"] = exc.context["details"]
    return JSONResponse(status_code=exc.status_code, content=body)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    request_id = get_request_id(request)
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        request_id=request_id,
        path=request.url.path,
        fields=[detail["field"] for detail in details],
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details, "requestId": request_id},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = get_request_id(request)
    logger.log_error(exc, "Unhandled exception", request_id=request_id, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": INTERNAL_ERROR_MESSAGE,
            "message": "An unexpected error occurred",
            "requestId": request_id,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseError, base_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
