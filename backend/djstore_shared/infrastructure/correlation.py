"""
Request correlation.

Every request is served under one request ID: the caller's `X-Request-ID`
when it sends one, a fresh UUID otherwise. The ID is echoed back in the
response header, exposed as `request.state.request_id`, stamped on every log
record emitted while the request is served and used as the `traceId` of
problem details.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

REQUEST_ID_HEADER = "X-Request-ID"

_current_request_id: ContextVar[str | None] = ContextVar("djstore_request_id", default=None)


def get_request_id() -> str:
    """ID of the request being served, or an empty string outside a request."""
    return _current_request_id.get() or ""


@contextmanager
def bound_request_id(request_id: str) -> Iterator[str]:
    """Serve the enclosed block under `request_id`."""
    token = _current_request_id.set(request_id)
    try:
        yield request_id
    finally:
        _current_request_id.reset(token)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a request ID to each request and returns it in the response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        with bound_request_id(request_id):
            response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
