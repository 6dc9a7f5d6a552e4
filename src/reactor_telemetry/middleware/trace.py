"""Middleware for per-request logging with trace_id and request_id."""
from __future__ import annotations

from uuid import UUID, uuid4

import structlog
from aiohttp import web

TRACE_ID_HEADER = "X-Trace-Id"
REQUEST_ID_HEADER = "X-Request-Id"

logger = structlog.get_logger(__name__)


def is_valid_uuid(value: str) -> bool:
    """Check if string is a valid UUID."""
    try:
        UUID(value)
        return True
    except (ValueError, AttributeError):
        return False


def create_trace_middleware(service_name: str):
    """Create the request logging middleware for the given service name."""

    @web.middleware
    async def trace_middleware(request: web.Request, handler):
        """Log one line per request, then delegate.

        Response status is not logged. The bound context is
        copied into tasks spawned by the handler (TSDB writes), so their log
        lines carry the same trace_id.
        """
        trace_id = request.headers.get(TRACE_ID_HEADER)
        if not trace_id or not is_valid_uuid(trace_id):
            trace_id = str(uuid4())

        request_id = request.headers.get(REQUEST_ID_HEADER)
        if not request_id or not is_valid_uuid(request_id):
            request_id = str(uuid4())

        request["trace_id"] = trace_id
        request["request_id"] = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            trace_id=trace_id,
            request_id=request_id,
            service=service_name,
            method=request.method,
            path=request.path,
        )

        logger.info("Incoming request", method=request.method, path=request.path)

        try:
            response = await handler(request)
            response.headers[TRACE_ID_HEADER] = trace_id
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except web.HTTPException as exc:
            exc.headers[TRACE_ID_HEADER] = trace_id
            exc.headers[REQUEST_ID_HEADER] = request_id
            raise
        finally:
            structlog.contextvars.clear_contextvars()

    return trace_middleware
