"""
Problem details (RFC 7807) for unhandled store and service errors.

- SQLAlchemyError and DataAccessError: 500
- NotImplementedError: 503

Responses use the application/problem+json media type and carry the
request's correlation ID as `traceId`. HTTPException subclasses keep
FastAPI's default handling.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from djstore_api.services.crud.errors import DataAccessError
from djstore_shared.config.logging import rest_api_logger as logger
from djstore_shared.config.settings import settings
from djstore_shared.infrastructure.correlation import get_request_id

PROBLEM_JSON = "application/problem+json"

PROBLEM_TYPES = {
    status.HTTP_500_INTERNAL_SERVER_ERROR: "https://tools.ietf.org/html/rfc9110#section-15.6.1",
    status.HTTP_503_SERVICE_UNAVAILABLE: "https://tools.ietf.org/html/rfc9110#section-15.6.4",
}

PROBLEM_TITLES = {
    status.HTTP_500_INTERNAL_SERVER_ERROR: "An error occurred while processing your request.",
    status.HTTP_503_SERVICE_UNAVAILABLE: "The service is not available.",
}


def problem_response(request: Request, status_code: int, exc: Exception) -> JSONResponse:
    body: dict[str, Any] = {
        "type": PROBLEM_TYPES.get(status_code, "about:blank"),
        "title": PROBLEM_TITLES.get(status_code, "Error"),
        "status": status_code,
        "instance": request.url.path,
    }
    if settings.debug and str(exc):
        body["detail"] = str(exc)
    trace_id = getattr(request.state, "request_id", None) or get_request_id()
    if trace_id:
        body["traceId"] = trace_id
    return JSONResponse(status_code=status_code, content=body, media_type=PROBLEM_JSON)


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled store error",
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return problem_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


async def not_implemented_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning("Operation not implemented", path=request.url.path)
    return problem_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(DataAccessError, store_error_handler)
    app.add_exception_handler(NotImplementedError, not_implemented_handler)
