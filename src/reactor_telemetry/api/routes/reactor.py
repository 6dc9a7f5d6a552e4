"""Reactor telemetry endpoints."""
from __future__ import annotations

import time

from aiohttp import web

from reactor_telemetry.api.utils import read_snapshot
from reactor_telemetry.services.store import get_snapshot_store
from reactor_telemetry.services.tsdb import get_tsdb_writer

routes = web.RouteTableDef()


@routes.post("/reactor")
async def post_reactor(request: web.Request) -> web.Response:
    """Accept one snapshot from the controller agent.

    The snapshot is stamped with the server's wall-clock second, published to
    the store and then handed to the TSDB writer without waiting on it.
    """
    snapshot = (await read_snapshot(request)).stamped(int(time.time()))

    await get_snapshot_store(request.app).publish(snapshot)

    writer = get_tsdb_writer(request.app)
    if writer is not None:
        writer.submit(snapshot)

    return web.Response(text="ok\n", content_type="text/plain")


@routes.get("/reactor", allow_head=False)
async def get_reactor(request: web.Request) -> web.Response:
    latest = await get_snapshot_store(request.app).read_latest()
    return web.json_response(latest.to_wire())


@routes.get("/history")
async def get_history(request: web.Request) -> web.Response:
    history = await get_snapshot_store(request.app).read_history()
    return web.json_response([snapshot.to_wire() for snapshot in history])


@routes.get("/ping")
async def ping(_request: web.Request) -> web.Response:
    return web.Response(text="pong")
