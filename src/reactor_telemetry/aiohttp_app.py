"""aiohttp application helpers."""
from __future__ import annotations

from typing import Literal, Protocol

from aiohttp import web
from aiohttp_cors import CorsConfig, ResourceOptions, setup as cors_setup

from reactor_telemetry.middleware.trace import create_trace_middleware
from reactor_telemetry.services.store import get_snapshot_store
from reactor_telemetry.services.tsdb import get_tsdb_writer

# aiohttp_cors expects a sequence of strings (or "*"), NOT a comma-separated string.
_ALLOWED_HEADERS = (
    "Accept",
    "Content-Type",
    "X-Trace-Id",
    "X-Request-Id",
)

_ALLOWED_METHODS = (
    "GET",
    "HEAD",
    "POST",
    "OPTIONS",
)

_EXPOSED_HEADERS = (
    "X-Trace-Id",
    "X-Request-Id",
)


class SettingsProtocol(Protocol):
    """Protocol for settings objects used by the app helpers."""

    app_name: str
    env: Literal["development", "staging", "production"]
    cors_allowed_origins: list[str]
    max_body_bytes: int


def create_base_app(settings: SettingsProtocol) -> tuple[web.Application, CorsConfig]:
    """Create a base aiohttp app with request logging and CORS configured."""
    app = web.Application(client_max_size=settings.max_body_bytes)

    app.middlewares.append(create_trace_middleware(settings.app_name))

    cors = cors_setup(
        app,
        defaults={
            origin: ResourceOptions(
                allow_credentials=False,
                expose_headers=_EXPOSED_HEADERS,
                allow_headers=_ALLOWED_HEADERS,
                allow_methods=_ALLOWED_METHODS,
            )
            for origin in settings.cors_allowed_origins
        },
    )

    return app, cors


def _tsdb_state(app: web.Application) -> str:
    writer = get_tsdb_writer(app)
    if writer is None or writer.healthy is None:
        return "unknown"
    return "ok" if writer.healthy else "unreachable"


def add_healthcheck(app: web.Application, settings: SettingsProtocol) -> None:
    """Register a health endpoint reporting the startup TSDB probe and history size."""

    async def healthcheck(request: web.Request) -> web.Response:
        history_size = await get_snapshot_store(request.app).size()
        return web.json_response(
            {
                "status": "ok",
                "service": settings.app_name,
                "env": settings.env,
                "tsdb": _tsdb_state(request.app),
                "history_size": history_size,
            }
        )

    app.router.add_get("/health", healthcheck)


def add_cors_to_routes(app: web.Application, cors: CorsConfig) -> None:
    """Apply CORS configuration to all routes in the app."""
    for route in list(app.router.routes()):
        cors.add(route)
