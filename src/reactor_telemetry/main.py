"""aiohttp application entrypoint."""
from __future__ import annotations

import sys

import structlog
from aiohttp import web

from reactor_telemetry.aiohttp_app import add_cors_to_routes, add_healthcheck, create_base_app
from reactor_telemetry.api.routes.reactor import routes as reactor_routes
from reactor_telemetry.logging_config import configure_logging
from reactor_telemetry.services.store import SNAPSHOT_STORE_KEY, SnapshotStore
from reactor_telemetry.services.tsdb import ClientFactory, create_tsdb_hooks, set_tsdb_client_factory
from reactor_telemetry.settings import Settings, settings as default_settings

logger = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    tsdb_client_factory: ClientFactory | None = None,
) -> web.Application:
    settings = settings or default_settings
    app, cors = create_base_app(settings)

    app[SNAPSHOT_STORE_KEY] = SnapshotStore(max_entries=settings.history_max_entries)
    if tsdb_client_factory is not None:
        set_tsdb_client_factory(app, tsdb_client_factory)

    add_healthcheck(app, settings)
    app.add_routes(reactor_routes)

    start_tsdb_writer, stop_tsdb_writer = create_tsdb_hooks(settings)
    app.on_startup.append(start_tsdb_writer)
    app.on_cleanup.append(stop_tsdb_writer)

    # aiohttp_cors answers every OPTIONS itself, so only wire it when origins are configured
    if settings.cors_allowed_origins:
        add_cors_to_routes(app, cors)

    return app


def main() -> None:
    configure_logging(default_settings.log_level)
    logger.info("Starting server", host=default_settings.host, port=default_settings.port)
    try:
        web.run_app(
            create_app(),
            host=default_settings.host,
            port=default_settings.port,
            access_log=None,
            print=None,
        )
    except OSError as exc:
        logger.error("Failed to bind listener", port=default_settings.port, error=str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
