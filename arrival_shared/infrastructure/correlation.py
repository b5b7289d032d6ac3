"""
Request Correlation.

Adds correlation IDs to HTTP requests and WebSocket sessions so every log
line can be traced back to the request or connection that produced it.
"""

import logging
import uuid
from contextvars import ContextVar, Token
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for request / connection ID (task-local)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Get the current request or connection ID."""
    return request_id_var.get()


def bind_correlation_id(value: str) -> Token:
    """
    Bind a correlation ID for the current task.

    WebSocket endpoints call this with the connection ID so that every log
    line emitted while serving the connection carries it.

    Returns:
        Token to pass to ``request_id_var.reset()``.
    """
    return request_id_var.set(value)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to all HTTP requests.

    - If X-Request-ID header is present, uses that value
    - Otherwise generates a new UUID
    - Sets the ID in context for logging
    - Returns the ID in response headers

    WebSocket scopes pass through untouched; they bind the connection ID
    themselves.
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get(self.HEADER_NAME)
        if not request_id:
            request_id = str(uuid.uuid4())

        token = request_id_var.set(request_id)

        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            return response
        finally:
            request_id_var.reset(token)


class CorrelationIdFilter(logging.Filter):
    """
    Logging filter that adds request_id to log records.

    Usage:
        import logging
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True
