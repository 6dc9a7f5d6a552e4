"""Helper utilities for API handlers."""
from __future__ import annotations

import structlog
from aiohttp import web
from pydantic import ValidationError

from reactor_telemetry.domain.dto import ReactorSnapshot

logger = structlog.get_logger(__name__)


def describe_validation_error(exc: ValidationError) -> str:
    """Short plain-text reason for a rejected snapshot body."""
    errors = exc.errors()
    if not errors:
        return "Invalid JSON"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON"
    location = ".".join(str(part) for part in first.get("loc", ()))
    if not location:
        return f"Invalid JSON: {first.get('msg')}"
    return f"Invalid field {location}: {first.get('msg')}"


async def read_body(request: web.Request) -> bytes:
    """Read the whole request body, raising HTTPBadRequest on any failure.

    The size cap comes from the application's ``client_max_size``.
    """
    try:
        return await request.read()
    except web.HTTPRequestEntityTooLarge as exc:
        logger.warning("Request body too large", error=str(exc))
        raise web.HTTPBadRequest(text="Request body too large") from exc
    except Exception as exc:
        logger.warning("Failed to read body", error=str(exc), error_type=type(exc).__name__)
        raise web.HTTPBadRequest(text="Failed to read body") from exc


async def read_snapshot(request: web.Request) -> ReactorSnapshot:
    body = await read_body(request)
    try:
        return ReactorSnapshot.model_validate_json(body)
    except ValidationError as exc:
        reason = describe_validation_error(exc)
        logger.warning("JSON decode failed", reason=reason)
        raise web.HTTPBadRequest(text=reason) from exc
